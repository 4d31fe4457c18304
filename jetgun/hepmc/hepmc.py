#
# This file contains various functions for handling HepMC3 objects,
# via the official HepMC3 Python bindings. The bindings are imported
# lazily, so that nothing here requires them until it is actually used.
#
import pathlib
import numpy as np
from typing import Union, Optional, TYPE_CHECKING
from jetgun.errors import PersistenceError

if TYPE_CHECKING: # Only imported during type checking -- avoids unnecessary imports
    from pyHepMC3 import HepMC3 as hm

class Pythia8HepMC3Writer:
    """
    Writes HepMC3 events to a single output file, either in ROOT format
    (HepMC3's "WriterRootTree") or in plaintext (HepMC3's "WriterAscii").
    """
    def __init__(self, filename:Optional[str]=None, mode:Optional[str]=None):
        self.mode = None
        self.initialized = False
        self.closed = False
        self.output = None

        self.SetFilename(filename,mode)

    def SetFilename(self,filename:Optional[str]=None,mode:Optional[str]=None):
        self.filename = filename
        if(mode is not None):
            self.SetMode(mode)
        elif(filename is not None):
            if('.root' in filename):
                self.SetMode('root')
            else:
                self.SetMode('ascii')

    def GetFilename(self) -> str:
        return self.filename

    def SetMode(self,mode:str):
        mode = mode.lower()
        if(mode not in ['root','ascii']):
            raise ValueError('HepMC3 output mode "{}" not understood, options are "root" and "ascii".'.format(mode))
        self.mode = mode

    def InitializeWriter(self):
        if(self.mode is None or self.filename is None):
            raise PersistenceError('HepMC3 writer needs a filename before it can be initialized.')

        try:
            if(self.mode == 'root'):
                self._init_root()
            else:
                self._init_ascii()
        except ImportError:
            raise
        except Exception as e:
            raise PersistenceError('Could not open HepMC3 output file {}: {}'.format(self.filename,e)) from e

        if(self.output.failed()):
            raise PersistenceError('Could not open HepMC3 output file {}.'.format(self.filename))
        self.initialized = True

    def _init_root(self):
        from pyHepMC3.rootIO.pyHepMC3rootIO.HepMC3 import WriterRootTree
        self.output = WriterRootTree(self.filename)

    def _init_ascii(self):
        from pyHepMC3 import HepMC3 as hm
        self.output = hm.WriterAscii(self.filename)

    def Close(self):
        """
        Finalizes the output file. Safe to call more than once,
        only the first call does anything.
        """
        if(self.closed or not self.initialized): return
        self.closed = True
        self.output.close()

    def Write(self,hepev_list:Union[list,'hm.GenEvent']):
        if(not self.initialized): self.InitializeWriter()
        if(self.closed):
            raise PersistenceError('Tried to write to HepMC3 output file {} after it was closed.'.format(self.filename))

        if(type(hepev_list) is not list): hepev_list = [hepev_list]
        for hepev in hepev_list:
            self.output.write_event(hepev)
            if(self.output.failed()):
                raise PersistenceError('Failed to write event {} to {}.'.format(hepev.event_number(),self.filename))
        return

def AddJetAttributes(hepev:'hm.GenEvent', jet_name:str, pmu:np.ndarray):
    """
    Stores a set of jets as event-level attributes: the jet multiplicity
    under "<jet_name>.N", and the four-momentum components (in pT-sorted order)
    under "<jet_name>.E", "<jet_name>.Px", "<jet_name>.Py" and "<jet_name>.Pz".
    Input pmu has format (E, px, py, pz), in the event's momentum units.
    """
    from pyHepMC3 import HepMC3 as hm
    pmu = np.atleast_2d(np.asarray(pmu,dtype='f8')).reshape(-1,4)
    hepev.add_attribute('{}.N'.format(jet_name), hm.IntAttribute(int(pmu.shape[0])))
    for i,component in enumerate(['E','Px','Py','Pz']):
        hepev.add_attribute('{}.{}'.format(jet_name,component), hm.VectorDoubleAttribute([float(x) for x in pmu[:,i]]))
    return

#================================
# Reading events back in.
#================================

def ExtractHepMCEvents(files:Union[list,str],get_nevents:bool=False, silent:bool=False):
    if(isinstance(files,str)): files = [files]
    events = []
    nevents = 0
    for file in files:
        if(file.split('.')[-1].lower() == 'root'):
            events_tmp, nevents_tmp = _extract_events(file,'root',silent)
        else:
            events_tmp, nevents_tmp = _extract_events(file,'ascii',silent)
        events += events_tmp
        nevents += nevents_tmp

    if(get_nevents): return events, nevents
    return events

def _extract_events(file:str, mode:str, silent:bool=False):
    from pyHepMC3 import HepMC3 as hm
    events = []

    # Check that the file exists.
    if(not pathlib.Path(file).exists()):
        if(not silent):
            print('Warning: Tried to access file {} but it does not exist!'.format(file))
        return events, 0

    if(mode == 'root'):
        from pyHepMC3.rootIO.pyHepMC3rootIO.HepMC3 import ReaderRootTree
        input = ReaderRootTree(file)
    else:
        input = hm.ReaderAscii(file)

    while(True):
        evt = hm.GenEvent()
        input.read_event(evt)
        if(input.failed()):
            break
        events.append(evt)
    input.close()
    return events, len(events)

def GetJetAttributes(hepev:'hm.GenEvent', jet_name:str) -> np.ndarray:
    """
    Inverse of AddJetAttributes(). Returns the jets' four-momenta as (E, px, py, pz).
    """
    from pyHepMC3 import HepMC3 as hm
    n = hepev.attribute_as_string('{}.N'.format(jet_name))
    if(n == ''): return np.empty((0,4))
    n = int(n)
    result = np.zeros((n,4))
    for i,component in enumerate(['E','Px','Py','Pz']):
        attr = hm.VectorDoubleAttribute()
        attr.from_string(hepev.attribute_as_string('{}.{}'.format(jet_name,component)))
        result[:,i] = np.array(attr.value())[:n]
    return result

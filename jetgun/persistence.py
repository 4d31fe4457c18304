# Writing accepted events (and their jets) to the output store.
import numpy as np
from contextlib import contextmanager
from typing import Optional, TYPE_CHECKING
from jetgun.buffer import Buffer, HDF5FlushHandler
from jetgun.meta import MetaDataHandler
from jetgun.errors import PersistenceError

if TYPE_CHECKING:
    from jetgun.jets import JetSet
    from jetgun.hepmc.hepmc import Pythia8HepMC3Writer
    from jetgun.hepmc.Pythia8ToHepMC3 import Pythia8ToHepMC3
    from jetgun.pythia.utils import PythiaWrapper

class JetSummaryWriter:
    """
    Columnar summary of the jets of every persisted event, written to an HDF5 file.
    Entries are keyed by the HepMC3 event number ("event_idx"), so they can be
    matched up with the events in the HepMC3 file.
    """

    def __init__(self, filename:str, jet_name:str='AntiKt04GenJets', n_jets_max:int=20, buffer_size:int=100, compression_opts:int=7, metadata:Optional[MetaDataHandler]=None):
        self.filename = filename
        self.jet_name = jet_name
        self.n_jets_max = n_jets_max
        self.metadata = metadata
        self.closed = False

        self.buffer = Buffer(buffer_size=buffer_size, flush_handler=HDF5FlushHandler(filename,compression_opts=compression_opts))
        self.buffer.create_array('event_idx', dtype=np.int64)
        self.buffer.create_array(self.GetKey('N'), dtype=np.int32)
        self.buffer.create_array(self.GetKey('Pmu'), (self.n_jets_max,4), np.float64)
        self.buffer.create_array(self.GetKey('Pmu_cyl'), (self.n_jets_max,4), np.float64)

    def GetKey(self,name):
        return '{}.{}'.format(self.jet_name,name)

    def GetFilename(self):
        return self.filename

    def Fill(self, event_number:int, jet_set:'JetSet'):
        self.buffer.set('event_idx',event_number)
        self.buffer.set(self.GetKey('N'),len(jet_set))
        self.buffer.set(self.GetKey('Pmu'),jet_set.GetPmu())
        self.buffer.set(self.GetKey('Pmu_cyl'),jet_set.GetPmuCyl())
        self.buffer.next_event()

    def Close(self):
        if(self.closed): return
        self.closed = True
        self.buffer.flush(force=True)
        if(self.metadata is not None):
            self.metadata.AddMetaDataToHDF5File(self.filename)

class EventPersistence:
    """
    Converts the generator's current event to HepMC3, attaches its jets, and
    writes it out. Anything going wrong here ends the run, with a PersistenceError.
    """

    def __init__(self, converter:'Pythia8ToHepMC3', writer:'Pythia8HepMC3Writer', jet_name:str='AntiKt04GenJets', jet_summary:Optional[JetSummaryWriter]=None):
        self.converter = converter
        self.writer = writer
        self.jet_name = jet_name
        self.jet_summary = jet_summary
        self.finalized = False
        self.print_prefix = '[EventPersistence]'

    @contextmanager
    def ScopedEvent(self):
        """
        A fresh HepMC3 event, which is cleared once we're done with it
        (also if something went wrong).
        """
        hepev = self.converter.NewEvent()
        try:
            yield hepev
        finally:
            hepev.clear()

    def Persist(self, generator:'PythiaWrapper', jet_set:'JetSet', event_number:int):
        if(self.finalized):
            raise PersistenceError('Tried to persist event {} after the output was finalized.'.format(event_number))
        try:
            with self.ScopedEvent() as hepev:
                self.converter.fill_next_event(generator, hepev, event_number)
                self.converter.AddJets(hepev, self.jet_name, jet_set.GetPmu())
                self.writer.Write(hepev)
            # only events that made it into the HepMC3 file get a row in the jet summary
            if(self.jet_summary is not None):
                self.jet_summary.Fill(event_number, jet_set)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError('Failed to persist event {}: {}'.format(event_number,e)) from e

    def Finalize(self):
        """
        Closes the output store. Only the first call does anything.
        Both outputs are closed even if the first one fails.
        """
        if(self.finalized): return
        self.finalized = True

        errors = []
        outputs = [self.writer]
        if(self.jet_summary is not None): outputs.append(self.jet_summary)
        for output in outputs:
            try:
                output.Close()
            except Exception as e:
                self._print('Error: Failed to close {}: {}'.format(output.GetFilename(),e))
                errors.append(e)
        if(len(errors) > 0):
            raise PersistenceError('Failed to finalize output.') from errors[0]

    def IsFinalized(self):
        return self.finalized

    def _print(self,val):
        print('{}: {}'.format(self.print_prefix,val))
        return

import os, uuid, time, pathlib, json
import subprocess as sub
import h5py as h5
from typing import Optional

class MetaDataHandler:
    """
    Collects run-level metadata (how a run was produced), and stashes it into
    the attributes of an HDF5 file. Information that changes from one run to
    the next (time stamps, host name, unique IDs, file paths) is only kept with
    run_metadata=True, otherwise the file only depends on the run configuration.
    """

    def __init__(self, run_metadata:bool=False):

        self.metadata = {}
        self.run_metadata = run_metadata
        self.print_prefix = 'MetaDataHandler'
        self.Initialize()

    def AddElement(self,key,val,combine_dictionaries=False):
        if(key in self.metadata.keys()):
            old_val = self.metadata[key]
            if(isinstance(old_val,dict) and isinstance(val,dict) and combine_dictionaries):
                # special case: combine dictionaries
                for k,v in old_val.items():
                    val[k] = v
            else:
                self._print('Warning: Overwriting metadata associated with key={} .'.format(key))
        self.metadata[key] = val

    def AddCitations(self,val):
        """
        Special function for appending citation information to the metadata.
        Multiple objects may contribute to this key, each supplying a
        dictionary; we combine these together.
        """
        key = 'Metadata.Citations'
        self.AddElement(key,val,combine_dictionaries=True)

    def AddRunElement(self,key,val):
        """
        Adds an element that varies between otherwise identical runs.
        Dropped unless run metadata was requested.
        """
        if(not self.run_metadata): return
        self.AddElement(key,val)

    def Initialize(self):
        self.AddElement('Metadata.GitHash',self._get_git_revision_short_hash())
        start_time = time.time()
        self.AddRunElement('Metadata.Timestamp',start_time)
        self.AddRunElement('Metadata.Timestamp.StringUTC',time.strftime('%Y-%m-%d %H:%M:%S',time.gmtime(start_time)))
        self.AddRunElement('Metadata.HostName',self._get_hostname())
        self.AddRunElement('Metadata.UniqueID',str(uuid.uuid4()))
        self.AddRunElement('Metadata.UniqueIDShort',str(uuid.uuid4())[:5]) # a second, shorter random string

    def _get_git_revision_short_hash(self): # see https://stackoverflow.com/a/21901260
        cwd = os.path.dirname(os.path.abspath(__file__))
        try:
            result = sub.check_output(['git', 'rev-parse', '--short', 'HEAD'],cwd=cwd,stderr=sub.DEVNULL).decode('ascii').strip()
        except (sub.CalledProcessError, OSError):
            result = 'NO_GIT_HASH'
        return result

    def _get_hostname(self):
        try:
            result = sub.check_output(['hostname'],stderr=sub.DEVNULL).decode('ascii').strip()
        except (sub.CalledProcessError, OSError):
            result='NO_HOSTNAME'
        return result

    def AddMetaDataToHDF5File(self,h5_file:str,cwd:Optional[str]=None):
        """
        Writes the existing metadata (in self.metadata) into the attributes
        of the given HDF5 file. Dictionaries are not supported as HDF5
        attributes, so they are serialized with the json package.
        """
        if(cwd is not None):
            h5_file = '{}/{}'.format(cwd,h5_file)

        if(not pathlib.Path(h5_file).exists()):
            self._print('Input file {} does not exist.'.format(h5_file))
            return

        with h5.File(h5_file,'r+') as f:
            for key,value in self.metadata.items():
                if(isinstance(value,dict)):
                    value = json.dumps(value)
                elif(value is None):
                    value = 'None'
                f.attrs[key] = value
        return

    def _print(self,val):
        print('{}: {}'.format(self.print_prefix,val))
        return

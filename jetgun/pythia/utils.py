import pythia8mc as pyth8
from jetgun.errors import GeneratorInitializationError

class PythiaWrapper:

    """
    A simple wrapper for Pythia8. This is what the production loop talks to,
    so anything that is standing in for the generator (e.g. in the tests)
    needs to provide the same handful of methods.
    """

    def __init__(self,verbose=False):
        self.pythia = pyth8.Pythia('',False)
        self.config_dict = {}

        self.SetVerbose(verbose)
        self.initialized = False

    # The event record is owned by Pythia and reused for every event:
    # anything read from it is only valid until the next call to Next().
    def GetEvent(self):
        return self.pythia.event

    def GetParticleData(self):
        return self.pythia.particleData

    # The run-wide random number stream. Seeded once, via the config dictionary.
    def GetRndm(self):
        return self.pythia.rndm

    def SetVerbose(self,flag):
        self.verbose = flag

    def ReadString(self, string):
        self.pythia.readString(string)

    def ReadStrings(self,strings):
        for string in strings:
            string = string.strip('\n')
            string = string.split('#')[0]
            string = string.split('!')[0]
            if(string.strip() == ''): continue
            if(self.verbose): print('Reading string: {}'.format(string))
            self.ReadString(string)

    def ReadStringsFromFile(self,file):
        with open(file,'r') as f:
            strings = f.readlines()
            self.ReadStrings(strings)

    def ClearConfigDict(self):
        self.config_dict = {}

    def AddToConfigDict(self,cdict):
        for key,val in cdict.items():
            if(key in self.config_dict.keys() and self.verbose):
                if(self.config_dict[key] != val):
                    print('Warning: Overwriting configuration: {} .'.format(key))
                    print('\t[{}] -> [{}]'.format(self.config_dict[key],val))
            self.config_dict[key] = val

    def ReadConfigDict(self):
        strings = ['{} = {}'.format(key,val) for key,val in self.config_dict.items()]
        self.ReadStrings(strings)

    # Settings as Pythia holds them, after reading the card (and our config dictionary).
    def GetMode(self,key):
        return self.pythia.mode(key)

    def GetParm(self,key):
        return self.pythia.parm(key)

    def GetFlag(self,key):
        return self.pythia.flag(key)

    def IsInitialized(self):
        return self.initialized

    def InitializePythia(self):
        self.ReadConfigDict()
        if(not self.pythia.init()):
            raise GeneratorInitializationError('Pythia8 initialization failed.')
        self.initialized = True

    # Generates an event, in place. Returns Pythia's success flag.
    def Next(self):
        if(not self.initialized): self.InitializePythia()
        return bool(self.pythia.next())

    # Whether a failed Next() was due to running out of input (Les Houches files).
    def AtEndOfInput(self):
        return bool(self.pythia.infoPython().atEndOfFile())

    def ForceTimeShower(self, i_begin, i_end, scale):
        return self.pythia.forceTimeShower(i_begin, i_end, scale)

    # ---- Printouts ----

    def ListEvent(self):
        self.pythia.event.list(True)
        self.pythia.event.listJunctions()

    def Stat(self):
        self.pythia.stat()

    # ================
    # Event-level info
    # ================

    # Get the estimated cross-section (in mb), and its uncertainty.
    # Passing a code of 0 will give the cross-section for the sum of all active processes.
    def GetSigmaGen(self, i = 0):
        return self.pythia.infoPython().sigmaGen(i)

    def GetSigmaErr(self, i = 0):
        return self.pythia.infoPython().sigmaErr(i)


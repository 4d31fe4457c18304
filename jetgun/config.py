import sys,importlib,pathlib
import importlib.util
from dataclasses import dataclass
from typing import Dict, Optional, TYPE_CHECKING
from jetgun.errors import ConfigurationError

if TYPE_CHECKING:
    from jetgun.pythia.utils import PythiaWrapper

# Settings-card keys that define a run, and how Pythia stores them. These are
# Pythia's "spare" main-program slots, which Pythia itself knows about but never acts on.
CARD_KEYS = {
    'n_events'      : ('Main:numberOfEvents','mode'),
    'n_abort'       : ('Main:timesAllowErrors','mode'),
    'gun_id'        : ('Main:spareMode1','mode'),
    'energy'        : ('Main:spareParm1','parm'),
    'at_rest'       : ('Main:spareFlag1','flag'),
    'color_singlet' : ('Main:spareFlag2','flag'),
    'theta'         : ('Main:spareParm2','parm'),
    'shower_scale'  : ('Main:spareParm3','parm')
}

def GetConfigDictionary(config_file):
    if(not pathlib.Path(config_file).exists()):
        raise ConfigurationError('Configuration file {} was not found.'.format(config_file))
    config_name = config_file.split('/')[-1].split('.')[0]
    spec = importlib.util.spec_from_file_location("config.{}".format(config_name),config_file)
    config = importlib.util.module_from_spec(spec)
    sys.modules['config.{}'.format(config_name)] = config
    spec.loader.exec_module(config)
    return config.config

# Function for fetching a config file as a list of lines.
def GetConfigFileContent(config_file):
    with open(config_file,'r') as f:
        lines = f.readlines()
    lines = [x.strip().strip('\n') for x in lines]
    return lines

def ReadSettingsCard(card_file) -> Dict[str,str]:
    """
    Parses a Pythia settings card into a dictionary, keyed by the lower-cased
    setting name (Pythia itself is case-insensitive). Comments following
    '!' or '#' are dropped. As in Pythia, the '=' between name and value
    is optional.
    """
    if(not pathlib.Path(card_file).exists()):
        raise ConfigurationError('Settings card {} was not found.'.format(card_file))

    settings = {}
    for line in GetConfigFileContent(card_file):
        line = line.split('#')[0].split('!')[0].replace('=',' ').strip()
        if(line == ''): continue
        fields = line.split(None,1)
        settings[fields[0].lower()] = fields[1].strip() if len(fields) > 1 else ''
    return settings

def CheckSettingsCard(settings:Dict[str,str]):
    """
    Every setting that defines the run has to be given explicitly in the card,
    we don't silently fall back on Pythia's defaults for them.
    """
    missing = [card_key for card_key,kind in CARD_KEYS.values() if card_key.lower() not in settings.keys()]
    if(len(missing) > 0):
        raise ConfigurationError('Settings card is missing required key(s): {}'.format(', '.join(missing)))

@dataclass(frozen=True)
class RunConfiguration:
    """
    Everything the production loop needs to know about a run.
    Built once from the generator's settings (and the jet radius from config.py),
    never modified afterwards.
    """

    n_events: int
    n_abort: int
    gun_id: int
    energy: float
    at_rest: bool
    color_singlet: bool
    theta: float
    shower_scale: float
    jet_radius: float = 0.4

    def __post_init__(self):
        if self.n_events < 0:
            raise ConfigurationError(f"Number of events must be non-negative, got {self.n_events}")
        if self.n_abort < 0:
            raise ConfigurationError(f"Number of allowed errors must be non-negative, got {self.n_abort}")
        if self.jet_radius <= 0.:
            raise ConfigurationError(f"Jet radius must be positive, got {self.jet_radius}")

    @classmethod
    def FromGenerator(cls, generator:'PythiaWrapper', jet_radius:float=0.4) -> 'RunConfiguration':
        """
        Reads the run settings back from the generator, once it has read the
        settings card. This way we see the values exactly as Pythia understood them.
        """
        getters = {
            'mode':lambda key: int(generator.GetMode(key)),
            'parm':lambda key: float(generator.GetParm(key)),
            'flag':lambda key: bool(generator.GetFlag(key))
        }
        values = {field:getters[kind](card_key) for field,(card_key,kind) in CARD_KEYS.items()}
        return cls(jet_radius=jet_radius, **values)

class Configurator:
    def __init__(self,config_dictionary):
        self.config = {}
        for key in ['generation','reconstruction','output']:
            if(key not in config_dictionary.keys()):
                raise ConfigurationError('Configuration is missing the "{}" section.'.format(key))
            self.config[key] = config_dictionary[key]

        self.generation = self.config['generation']
        self.reconstruction = self.config['reconstruction']
        self.output = self.config['output']

        # Will also use this for some print statement bookkeeping, since it is conveniently passed around.
        self.print_fastjet = True

    def _get(self,section,key):
        try:
            return self.config[section][key]
        except KeyError:
            raise ConfigurationError('Configuration entry [{}][{}] not found.'.format(section,key))

    # ---- Generation ----

    def GetPythiaVerbosity(self):
        return self._get('generation','verbose')

    def GetResonanceId(self):
        return int(self._get('generation','resonance_id'))

    def GetHepMCFormat(self):
        return self._get('generation','hepmc_format').lower()

    def GetMomentumUnit(self):
        return self._get('generation','momentum_unit').upper()

    def GetLengthUnit(self):
        return self._get('generation','length_unit').upper()

    def GetPythiaConfig(self,seed:Optional[int]=None,verbose=False):
        """
        Settings that we always hand to Pythia, on top of whatever is in the
        settings card. The card is read first, so these take precedence.
        """
        pythia_config = {}
        if(seed is not None):
            pythia_config['Random:setSeed'] = 'on'
            pythia_config['Random:seed'] = seed

        if(not verbose):
            pythia_config['Print:quiet'] = 'on' # avoid printing reams of info
            pythia_config['Next:numberCount'] = '0'
        else:
            pythia_config['Print:quiet'] = 'off'
            pythia_config['Next:numberShowEvent'] = '1'
        return pythia_config

    # ---- Reconstruction ----

    def GetJetAlgorithm(self):
        return self._get('reconstruction','jet_algorithm')

    def GetJetRadius(self):
        return float(self._get('reconstruction','jet_radius'))

    def GetJetName(self):
        return self._get('reconstruction','jet_name')

    def GetNJetsMax(self):
        return int(self._get('reconstruction','n_jets_max'))

    def GetPrintFastjet(self):
        return self.print_fastjet

    def SetPrintFastjet(self,val):
        self.print_fastjet = val

    # ---- Output ----

    def GetJetSummaryFlag(self):
        return bool(self._get('output','jet_summary'))

    def GetBufferSize(self):
        return int(self._get('output','buffer_size'))

    def GetCompressionOpts(self):
        return int(self._get('output','compression_opts'))

    def GetRunMetadataFlag(self):
        return bool(self._get('output','run_metadata'))

    # ---- Settings card ----

    def ValidateSettingsCard(self,card_file):
        CheckSettingsCard(ReadSettingsCard(card_file))

    def GetRunConfiguration(self,generator:'PythiaWrapper') -> RunConfiguration:
        return RunConfiguration.FromGenerator(generator,jet_radius=self.GetJetRadius())

    def GetSettingsCardContents(self,card_file):
        with open(card_file,'r') as f:
            contents = f.readlines()
        return ''.join(contents)

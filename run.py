import sys,os,pathlib,time,datetime,shlex
from jetgun.args import GetParser
from jetgun.config import Configurator, GetConfigDictionary, GetConfigFileContent
from jetgun.errors import StartupError, PersistenceError
from jetgun.generation import ProductionLoop
from jetgun.hepmc.hepmc import Pythia8HepMC3Writer
from jetgun.hepmc.Pythia8ToHepMC3 import Pythia8ToHepMC3
from jetgun.jets import JetFinder
from jetgun.meta import MetaDataHandler
from jetgun.particle_selection import FinalStateSelector
from jetgun.persistence import EventPersistence, JetSummaryWriter
from jetgun.pythia.gun import ParticleGun

def GetJetSummaryFilename(outfile):
    path = pathlib.Path(outfile)
    return str(path.with_name('{}_jets.h5'.format(path.stem)))

def GetHepMCMode(outfile, configurator):
    # The file extension wins, the configuration is the fallback.
    suffix = pathlib.Path(outfile).suffix.lower()
    if(suffix == '.root'): return 'root'
    if(suffix in ['.hepmc','.hepmc3']): return 'ascii'
    return configurator.GetHepMCFormat()

def Produce(card, outfile, seed, config_file=None, verbose=False, progress_bar=True, jet_file=None):
    """
    Sets everything up, and runs the production loop.
    Raises a StartupError if anything is wrong before the first event,
    and a PersistenceError if the output could not be written.
    """
    # Configurator class, used for fetching information from our config file.
    # We import this from a user-supplied file, by default it is config/config.py.
    this_dir = os.path.dirname(os.path.abspath(__file__))
    if(config_file is None):
        config_file = '{}/config/config.py'.format(this_dir)
    if(verbose): print('Using configuration file: {} .'.format(config_file))
    configurator = Configurator(config_dictionary=GetConfigDictionary(config_file))
    configurator.ValidateSettingsCard(card)

    # Pythia reads the card itself; our own fixed settings (seed, printing) go on top.
    from jetgun.pythia.utils import PythiaWrapper # needs the generator bindings
    pythia_verbose = verbose or configurator.GetPythiaVerbosity()
    pythia = PythiaWrapper(verbose=pythia_verbose)
    pythia.ReadStringsFromFile(card)
    pythia.ClearConfigDict()
    pythia.AddToConfigDict(configurator.GetPythiaConfig(seed,pythia_verbose))
    pythia.InitializePythia()

    run_config = configurator.GetRunConfiguration(pythia)
    if(verbose): print('\tRun configuration: {}'.format(run_config))

    gun = ParticleGun.FromRunConfiguration(run_config, resonance_id=configurator.GetResonanceId())
    jet_finder = JetFinder.FromConfigurator(configurator, radius=run_config.jet_radius)

    # Now the output.
    converter = Pythia8ToHepMC3(configurator.GetMomentumUnit(), configurator.GetLengthUnit())
    writer = Pythia8HepMC3Writer(outfile, mode=GetHepMCMode(outfile,configurator))

    jet_summary = None
    if(configurator.GetJetSummaryFlag()):
        if(jet_file is None): jet_file = GetJetSummaryFilename(outfile)
        metadata = MetaDataHandler(run_metadata=configurator.GetRunMetadataFlag())
        metadata.AddElement('Metadata.PythiaRandomSeed',seed)
        metadata.AddElement('Metadata.ConfigFile','\n'.join(GetConfigFileContent(config_file)))
        metadata.AddElement('Metadata.PythiaConfig',configurator.GetSettingsCardContents(card))
        metadata.AddElement('Metadata.JetDefinition',jet_finder.GetDescription())
        metadata.AddCitations(jet_finder.GetCitations())
        metadata.AddRunElement('Metadata.CommandLineArguments'," ".join(map(shlex.quote, sys.argv[1:])))
        metadata.AddRunElement('Metadata.HepMCFile',outfile)
        jet_summary = JetSummaryWriter(
            jet_file,
            jet_name=jet_finder.GetJetName(),
            n_jets_max=jet_finder.GetNJetsMax(),
            buffer_size=configurator.GetBufferSize(),
            compression_opts=configurator.GetCompressionOpts(),
            metadata=metadata
        )
        print('Jet summary will be written to {}'.format(jet_file))

    writer.InitializeWriter() # so that the output exists even if no events make it there
    persistence = EventPersistence(converter, writer, jet_name=jet_finder.GetJetName(), jet_summary=jet_summary)
    loop = ProductionLoop(pythia, gun, FinalStateSelector(), jet_finder, persistence, run_config, progress_bar=progress_bar)
    loop.Run()
    return loop

def main(args):
    parser = GetParser()
    args = vars(parser.parse_args(args[1:]))

    start_time = time.time()

    card = args['card']
    outfile = args['outfile']
    seed = args['seed']
    config_file = args['config']
    verbose = args['verbose'] > 0
    progress_bar = args['progress_bar'] > 0
    jet_file = args['jetfile']

    print('\n >>> PYTHIA settings will be read from file {} <<< '.format(card))
    print(' >>> HepMC events will be written to file {} <<< \n'.format(outfile))

    if(not pathlib.Path(card).exists()):
        print('Error: Settings card {} was not found. Exiting.'.format(card),file=sys.stderr)
        return 1

    # A failed write leaves the output store incomplete, so unlike a run stopped
    # by the abort budget it ends with a non-zero exit code.
    try:
        loop = Produce(card, outfile, seed, config_file=config_file, verbose=verbose, progress_bar=progress_bar, jet_file=jet_file)
    except (StartupError, PersistenceError) as e:
        print('Error: {} Exiting.'.format(e),file=sys.stderr)
        return 1

    if(verbose): print('Production loop ended in state: {}'.format(loop.GetState().value))

    end_time = time.time()
    elapsed_time = end_time - start_time
    elapsed_time_readable = str(datetime.timedelta(seconds=elapsed_time))
    print('\n#############################')
    print('Done. Time elapsed = {:.1f} seconds.'.format(elapsed_time))
    print('({})'.format(elapsed_time_readable))
    print('#############################\n')
    return 0

if __name__ == '__main__':
    sys.exit(main(sys.argv))

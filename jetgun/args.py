import sys
import argparse as ap

def none_or_str(value): # see https://stackoverflow.com/a/48295546
    if value == 'None':
        return None
    return value

class ArgumentParser(ap.ArgumentParser):
    """
    Same as argparse's parser, except that usage errors give exit code 1
    (every startup problem shares the same exit code).
    """
    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, '{}: error: {}\n'.format(self.prog, message))

def GetParser():
    parser = ArgumentParser(description='Particle-gun event production with Pythia8, writing HepMC3 events and FastJet jets.')

    parser.add_argument('card',                                  type=str,                                   help='Pythia8 settings card.')
    parser.add_argument('outfile',                               type=str,                                   help='HepMC3 output file. Files ending in .root are written with the ROOT interface, anything else as plaintext (unless the configuration says otherwise).')
    parser.add_argument('seed',                                  type=int,                                   help='Pythia8 RNG seed.')
    parser.add_argument('-config',       '--config',             type=none_or_str,  default=None,            help='Path to configuration Python file. Default will use config/config.py .')
    parser.add_argument('-v',            '--verbose',            type=int,          default=0,               help='Verbosity.')
    parser.add_argument('-pb',           '--progress_bar',       type=int,          default=1,               help='Whether or not to print progress bar during event generation.')
    parser.add_argument('-j',            '--jetfile',            type=none_or_str,  default=None,            help='Output HDF5 file for the jet summary. Default is the HepMC3 file name, with "_jets.h5" in place of the extension.')
    return parser

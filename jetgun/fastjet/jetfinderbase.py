import numpy as np
import fastjet as fj

class JetFinderBase:
    """
    This is a base class, for using the Fastjet library to perform jet clustering.
    It is leveraged by the JetFinder class in jetgun/jets.py .
    It holds the jet definition and does the clustering itself, while JetFinder
    wraps the results up for the rest of the production chain.
    """

    def __init__(self, jet_algorithm:str='anti_kt', radius:float=0.4):

        self.jet_algorithm_name = jet_algorithm
        self.radius = radius

        # some fastjet-specific vars, for internal usage
        self.jet_algorithm = None
        self.jetdef = None
        self.cluster_sequence = None
        self.jets_dict = None
        self.pt_sorting = None # allows access to the sorting array
        self.jet_ordering = None

        self.input_vecs = None
        self.print_banner = False

    # Inputs have format (px,py,pz,E).
    def SetInputs(self,vecs):
        self.input_vecs = vecs

    def SetPrintBanner(self,flag:bool):
        self.print_banner = flag

    def _parse_jet_algorithm(self):
        self.jet_algorithm = None
        for key in ['anti_kt','anti kt','anti-kt','antikt']:
            if(key in self.jet_algorithm_name.lower()):
                self.jet_algorithm = fj.antikt_algorithm
                return True

        for key in ['kt']:
            if(key in self.jet_algorithm_name.lower()):
                self.jet_algorithm = fj.kt_algorithm
                return True

        for key in ['c/a','cambridge','aachen']:
            if(key in self.jet_algorithm_name.lower()):
                self.jet_algorithm = fj.cambridge_aachen_algorithm
                return True

        return False

    def _initialize_jet_definition(self):
        if(self.jetdef is not None):
            return

        # The FastJet banner is unavoidable on the first clustering, so optionally get it out of the way here.
        if(self.print_banner):
            fj._swig.ClusterSequence.print_banner()

        # determine what jet algorithm to use
        if(not self._parse_jet_algorithm()):
            raise ValueError('Jet algorithm "{}" not understood.'.format(self.jet_algorithm_name))

        self.jetdef = fj.JetDefinition(self.jet_algorithm, self.radius)
        return

    def GetJetDefinition(self):
        self._initialize_jet_definition()
        return self.jetdef

    def _clusterJets(self):
        self._initialize_jet_definition()
        if(self.input_vecs is None or len(self.input_vecs) == 0):
            raise ValueError('Jet clustering requires at least one input four-momentum.')

        pj = [fj.PseudoJet(*[float(y) for y in x]) for x in self.input_vecs]

        # Attach indices to the pseudojet objects, so that we can trace them through jet clustering.
        # Indices will correspond to the order they were input (with zero-indexing).
        for i,pseudojet in enumerate(pj):
            pseudojet.set_user_index(i)

        self.cluster_sequence = fj.ClusterSequence(pj, self.jetdef) # member of class, otherwise goes out-of-scope when ref'd later
        self.jets_dict = {i:jet for i,jet in enumerate(self.cluster_sequence.inclusive_jets())}
        self.jet_ordering = np.arange(len(self.jets_dict))

    def _ptSort(self):
        """
        Sorts jets by decreasing pT. This is accomplished by modifying self.jet_ordering.
        Jets with equal pT keep the order in which Fastjet returned them.
        """
        if(len(self.jets_dict) < 1): # no jets -> nothing to do
            return

        jet_pt = np.array([np.hypot(self.jets_dict[i].px(),self.jets_dict[i].py()) for i in self.jet_ordering])
        self.pt_sorting = np.argsort(-jet_pt,kind='stable')
        self.jet_ordering = [self.jet_ordering[i] for i in self.pt_sorting]

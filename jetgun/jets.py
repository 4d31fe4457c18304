# Jet clustering of the selected final-state particles, one event at a time.
import numpy as np
from typing import Any, Dict, List, Optional
from jetgun.fastjet.jetfinderbase import JetFinderBase

class JetSet:
    """
    The inclusive jets of a single event, together with their pT ordering.
    Holds on to the cluster sequence, since Fastjet jets refer back to it.
    Only meant to live for one iteration of the production loop.
    """

    def __init__(self, cluster_sequence, jets_dict:Dict[int,Any], jet_ordering:List[int], description:str=''):
        self.cluster_sequence = cluster_sequence
        self.jets_dict = jets_dict
        self.jet_ordering = list(jet_ordering)
        self.description = description

    def __len__(self):
        return len(self.jet_ordering)

    def GetN(self):
        return len(self)

    def GetSortedJets(self):
        return [self.jets_dict[i] for i in self.jet_ordering]

    def GetPmu(self):
        """
        Four-momenta of the pT-sorted jets, as (E, px, py, pz).
        """
        if(len(self) == 0): return np.empty((0,4))
        return np.array([[jet.e(), jet.px(), jet.py(), jet.pz()] for jet in self.GetSortedJets()],dtype='f8')

    def GetPmuCyl(self):
        """
        Four-momenta of the pT-sorted jets, as (pt, eta, phi, m).
        """
        if(len(self) == 0): return np.empty((0,4))
        return np.array([[jet.pt(), jet.eta(), jet.phi(), jet.m()] for jet in self.GetSortedJets()],dtype='f8')

    def GetPt(self):
        return np.array([np.hypot(jet.px(),jet.py()) for jet in self.GetSortedJets()],dtype='f8')

    def GetDescription(self):
        return self.description

    def GetStrategy(self):
        if(self.cluster_sequence is None): return ''
        return self.cluster_sequence.strategy_string()

class JetFinder(JetFinderBase):
    """
    This class uses the Fastjet library to perform jet clustering, on some
    (arbitrary) set of inputs representing four-momenta of some objects.
    The algorithm and radius are fixed for the whole run.
    """

    def __init__(self, jet_algorithm:str='anti_kt', radius:float=0.4, jet_name:str='AntiKt04GenJets', n_jets_max:int=20):
        super().__init__(jet_algorithm=jet_algorithm, radius=radius)
        self.jet_name = jet_name
        self.n_jets_max = n_jets_max # max number of jets saved per event, in the jet summary

        # Generate info on citations for algorithms
        self.citations = {}
        self._generate_citations()

    @classmethod
    def FromConfigurator(cls, configurator, radius:Optional[float]=None):
        if(radius is None): radius = configurator.GetJetRadius()
        jet_finder = cls(
            jet_algorithm=configurator.GetJetAlgorithm(),
            radius=radius,
            jet_name=configurator.GetJetName(),
            n_jets_max=configurator.GetNJetsMax()
        )
        jet_finder.SetPrintBanner(configurator.GetPrintFastjet())
        configurator.SetPrintFastjet(False)
        return jet_finder

    def GetJetName(self):
        return self.jet_name

    def GetNJetsMax(self):
        return self.n_jets_max

    def GetCitations(self):
        return self.citations

    def GetDescription(self):
        return self.GetJetDefinition().description()

    def Cluster(self, momenta) -> JetSet:
        """
        Clusters the given four-momenta (px, py, pz, E), returning the
        inclusive jets sorted by decreasing pT. The input must not be empty.
        """
        self.SetInputs(momenta)
        self._clusterJets()
        self._ptSort()
        jet_set = JetSet(self.cluster_sequence, self.jets_dict, self.jet_ordering, description=self.GetDescription())

        # The JetSet owns the results now; don't keep this event's jets around.
        self.cluster_sequence = None
        self.jets_dict = None
        self.input_vecs = None
        return jet_set

    def _generate_citations(self):
        """
        Fills in citations (in BibTex format) for FastJet.
        """
        key = 'FastJet'
        if(key not in self.citations.keys()):
            self.citations[key] = [
                """
@article{Cacciari:2011ma,
    author = "Cacciari, Matteo and Salam, Gavin P. and Soyez, Gregory",
    title = "{FastJet User Manual}",
    eprint = "1111.6097",
    archivePrefix = "arXiv",
    primaryClass = "hep-ph",
    reportNumber = "CERN-PH-TH-2011-297",
    doi = "10.1140/epjc/s10052-012-1896-2",
    journal = "Eur. Phys. J. C",
    volume = "72",
    pages = "1896",
    year = "2012"
}
                """,
                """
@article{Cacciari:2005hq,
    author = "Cacciari, Matteo and Salam, Gavin P.",
    title = "{Dispelling the $N^{3}$ myth for the $k_t$ jet-finder}",
    eprint = "hep-ph/0512210",
    archivePrefix = "arXiv",
    reportNumber = "LPTHE-05-32",
    doi = "10.1016/j.physletb.2006.08.037",
    journal = "Phys. Lett. B",
    volume = "641",
    pages = "57--61",
    year = "2006"
}
                """
            ]

# Selection of the particles that are handed to jet clustering.
import numpy as np

NEUTRINO_CODES = (12, 14, 16)

def IsNeutrino(particle):
    return abs(particle.id()) in NEUTRINO_CODES

def IsVisibleFinal(particle):
    return particle.isFinal() and not IsNeutrino(particle)

class FinalStateSelector:
    """
    Picks out the final-state, non-neutrino particles of a Pythia8 event,
    and returns their four-momenta in the order in which they appear in the
    event record. Format is (px, py, pz, E) -- i.e. what Fastjet expects.
    The event is not modified.
    """

    def __call__(self, event):
        momenta = [
            (p.px(), p.py(), p.pz(), p.e())
            for p in (event[i] for i in range(event.size()))
            if IsVisibleFinal(p)
        ]
        if(len(momenta) == 0):
            return np.empty((0,4),dtype='f8')
        return np.array(momenta,dtype='f8')

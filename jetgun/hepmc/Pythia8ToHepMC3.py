#
# Conversion of a Pythia8 event record into a HepMC3 GenEvent,
# using the official HepMC3 Python bindings.
# Pythia works in GeV and mm; the HepMC3 event can use either MeV or GeV,
# and either mm or cm, and we rescale accordingly.
#
import numpy as np
from typing import Optional, TYPE_CHECKING
from jetgun.hepmc.hepmc import AddJetAttributes

if TYPE_CHECKING:
    from pyHepMC3 import HepMC3 as hm
    from jetgun.pythia.utils import PythiaWrapper

_MOMENTUM_FACTORS = {'GEV':1., 'MEV':1000.}
_LENGTH_FACTORS = {'MM':1., 'CM':0.1}

class Pythia8ToHepMC3:

    def __init__(self, momentum_unit:str='MEV', length_unit:str='MM'):
        momentum_unit = momentum_unit.upper()
        length_unit = length_unit.upper()
        if(momentum_unit not in _MOMENTUM_FACTORS.keys()):
            raise ValueError('Momentum unit "{}" not understood, options are {}.'.format(momentum_unit,list(_MOMENTUM_FACTORS.keys())))
        if(length_unit not in _LENGTH_FACTORS.keys()):
            raise ValueError('Length unit "{}" not understood, options are {}.'.format(length_unit,list(_LENGTH_FACTORS.keys())))
        self.momentum_unit = momentum_unit
        self.length_unit = length_unit
        self.mom_fac = _MOMENTUM_FACTORS[momentum_unit]
        self.len_fac = _LENGTH_FACTORS[length_unit]

    def GetUnits(self):
        from pyHepMC3 import HepMC3 as hm
        momentum_unit = hm.Units.MEV if self.momentum_unit == 'MEV' else hm.Units.GEV
        length_unit = hm.Units.MM if self.length_unit == 'MM' else hm.Units.CM
        return momentum_unit, length_unit

    def NewEvent(self) -> 'hm.GenEvent':
        from pyHepMC3 import HepMC3 as hm
        return hm.GenEvent(*self.GetUnits())

    def fill_next_event(self, generator:'PythiaWrapper', hepev:'hm.GenEvent', ievnum:Optional[int]=None):
        """
        Fills hepev with the generator's current event record. Entry 0 of the
        Pythia record (the "system" entry) is skipped. Mother/daughter relations
        are encoded as HepMC3 vertices: particles sharing a production vertex are
        attached to the end vertex of their first mother.
        """
        from pyHepMC3 import HepMC3 as hm
        event = generator.GetEvent()

        if(ievnum is not None): hepev.set_event_number(ievnum)
        hepev.set_units(*self.GetUnits())

        particles = [None]
        for i in range(1, event.size()):
            p = event[i]
            momentum = hm.FourVector(p.px() * self.mom_fac, p.py() * self.mom_fac, p.pz() * self.mom_fac, p.e() * self.mom_fac)
            particle = hm.GenParticle(momentum, p.id(), p.statusHepMC())
            particle.set_generated_mass(p.m() * self.mom_fac)
            particles.append(particle)

        vertices = []
        for i in range(1, event.size()):
            p = event[i]
            mothers = [m for m in p.motherList() if m > 0]
            if(len(mothers) == 0): continue

            production_vertex = particles[mothers[0]].end_vertex()
            if(production_vertex is None):
                production_vertex = hm.GenVertex()
                for m in mothers:
                    production_vertex.add_particle_in(particles[m])
                vertices.append(production_vertex)

            position = hm.FourVector(p.xProd() * self.len_fac, p.yProd() * self.len_fac, p.zProd() * self.len_fac, p.tProd() * self.len_fac)
            if(not position.is_zero() and production_vertex.position().is_zero()):
                production_vertex.set_position(position)
            production_vertex.add_particle_out(particles[i])

        for vertex in vertices:
            hepev.add_vertex(vertex)

        # Anything not attached to a vertex (e.g. the particle-gun seeds) gets added by hand.
        for particle in particles[1:]:
            if(not particle.in_event()):
                hepev.add_particle(particle)

        # Pythia gives mb, HepMC3 expects pb.
        xsec = hm.GenCrossSection()
        xsec.set_cross_section(generator.GetSigmaGen() * 1.0e9, generator.GetSigmaErr() * 1.0e9)
        hepev.set_cross_section(xsec)
        return True

    def AddJets(self, hepev:'hm.GenEvent', jet_name:str, pmu):
        """
        Attaches a set of jets (four-momenta as (E, px, py, pz), in GeV)
        to the event, as attributes. Momenta are put in the event's units.
        """
        AddJetAttributes(hepev, jet_name, np.asarray(pmu,dtype='f8') * self.mom_fac)

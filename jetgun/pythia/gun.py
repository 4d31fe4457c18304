# A "particle gun" for Pythia8: instead of letting Pythia pick a hard process,
# we fill the (empty) event record by hand at the start of every event.
# There are two mutually-exclusive ways of doing this, and which one is used
# is decided once, from the run configuration.
import numpy as np
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from jetgun.config import RunConfiguration
    from jetgun.pythia.utils import PythiaWrapper

def sqrtpos(val):
    return np.sqrt(np.maximum(val,0.))

def UnitVector(theta, phi):
    return np.array([np.sin(theta) * np.cos(phi), np.sin(theta) * np.sin(phi), np.cos(theta)])

def RandomDirection(rndm):
    """
    Isotropic direction, drawn from the run's random number stream.
    """
    cos_theta = 2. * rndm.flat() - 1.
    phi = 2. * np.pi * rndm.flat()
    return UnitVector(np.arccos(cos_theta), phi)

def Boost(p, e, beta):
    """
    Lorentz boost of a four-vector (3-momentum p, energy e) by velocity beta (3-vector).
    Returns the boosted (p, e).
    """
    beta2 = np.dot(beta,beta)
    if(beta2 <= 0.): return p, e
    gamma = 1. / np.sqrt(1. - beta2)
    bp = np.dot(beta,p)
    gamma2 = (gamma - 1.) / beta2
    p_new = p + (gamma2 * bp + gamma * e) * beta
    e_new = gamma * (e + bp)
    return p_new, e_new

def ColourTags(col_type):
    """
    Colour/anticolour tags for a back-to-back pair of particles whose first member
    has the given Pythia colour type, chosen such that the pair is a colour singlet.
    """
    if(col_type == 1):    return (101,0), (0,101)     # quark + antiquark
    elif(col_type == -1): return (0,101), (101,0)     # antiquark + quark
    elif(col_type == 2):  return (101,102), (102,101) # gluon + gluon
    return (0,0), (0,0)

def PartnerId(pid, particle_data):
    """
    The recoiling partner that closes the colour flow: the antiparticle
    where one exists, otherwise the particle itself (e.g. gluons).
    """
    if(particle_data.hasAnti(pid)): return -pid
    return pid

class HardProcess(ABC):

    def __init__(self, pid:int, energy:float):
        self.pid = pid
        self.energy = energy

    @abstractmethod
    def Fill(self, event, particle_data, rndm):
        """
        Reset the event record, and fill it with the hard process.
        """
        pass

    def ForceShower(self, generator:'PythiaWrapper'):
        """
        Anything the generator has to do between filling the event and Next().
        """
        pass

    def _append_pair(self, event, pid, particle_data, direction, p_abs, e, m, mothers=(0,0), status=23):
        pid2 = PartnerId(pid, particle_data)
        (col1,acol1),(col2,acol2) = ColourTags(particle_data.colType(pid))
        px,py,pz = p_abs * direction
        i1 = event.append(pid,  status, mothers[0], mothers[1], 0, 0, col1, acol1,  px,  py,  pz, e, m)
        i2 = event.append(pid2, status, mothers[0], mothers[1], 0, 0, col2, acol2, -px, -py, -pz, e, m)
        return i1, i2

class ResonanceProcess(HardProcess):
    """
    Two-body decay of a colour-singlet resonance, into a particle/antiparticle pair
    of the requested species. The resonance mass is set to the requested energy.
    If not at rest, the resonance is given a momentum (equal to the requested energy)
    along the direction (theta, phi).
    """
    def __init__(self, pid:int, energy:float, at_rest:bool=True, resonance_id:int=23, theta:float=0., phi:float=0.):
        super().__init__(pid, energy)
        self.at_rest = at_rest
        self.resonance_id = resonance_id
        self.theta = theta
        self.phi = phi

    def Fill(self, event, particle_data, rndm):
        event.reset()
        mass = self.energy

        # Resonance momentum in the lab frame.
        p_res = np.zeros(3)
        if(not self.at_rest):
            if(self.theta < 0.): direction = RandomDirection(rndm)
            else: direction = UnitVector(self.theta, self.phi)
            p_res = self.energy * direction
        e_res = np.sqrt(mass**2 + np.dot(p_res,p_res))
        event.append(self.resonance_id, -22, 0, 0, 2, 3, 0, 0, *p_res, e_res, mass)

        # Decay in the resonance rest frame, isotropically, then boost.
        m_d = particle_data.m0(self.pid)
        p_d = sqrtpos(0.25 * mass**2 - m_d**2)
        e_d = 0.5 * mass
        decay_axis = RandomDirection(rndm)
        beta = p_res / e_res

        pid2 = PartnerId(self.pid, particle_data)
        (col1,acol1),(col2,acol2) = ColourTags(particle_data.colType(self.pid))
        for pid,col,acol,sign in [(self.pid,col1,acol1,1.),(pid2,col2,acol2,-1.)]:
            p,e = Boost(sign * p_d * decay_axis, e_d, beta)
            event.append(pid, 23, 1, 0, 0, 0, col, acol, *p, e, m_d)
        return

class PartonProcess(HardProcess):
    """
    A parton of the requested species and energy, along (theta, phi), recoiling
    against a colour-connected partner. Both are showered with a forced time-like
    shower, starting at the given scale.
    """
    def __init__(self, pid:int, energy:float, theta:float=0., shower_scale:float=0., phi:float=0.):
        super().__init__(pid, energy)
        self.theta = theta
        self.phi = phi
        self.shower_scale = shower_scale

    def Fill(self, event, particle_data, rndm):
        event.reset()
        if(self.theta < 0.): direction = RandomDirection(rndm)
        else: direction = UnitVector(self.theta, self.phi)

        m = particle_data.m0(self.pid)
        p_abs = sqrtpos(self.energy**2 - m**2)
        i1, i2 = self._append_pair(event, self.pid, particle_data, direction, p_abs, self.energy, m)
        event[i1].scale(self.shower_scale)
        event[i2].scale(self.shower_scale)
        return

    def ForceShower(self, generator:'PythiaWrapper'):
        generator.ForceTimeShower(1, 2, self.shower_scale)

class ParticleGun:
    """
    Seeds every event with a hard process, before the generator is asked
    for the event. Any problem here will show up as a failed Next().
    """

    def __init__(self, hard_process:HardProcess):
        self.hard_process = hard_process

    @classmethod
    def FromRunConfiguration(cls, run_config:'RunConfiguration', resonance_id:int=23):
        if(run_config.color_singlet):
            hard_process = ResonanceProcess(run_config.gun_id, run_config.energy, at_rest=run_config.at_rest, resonance_id=resonance_id, theta=run_config.theta)
        else:
            hard_process = PartonProcess(run_config.gun_id, run_config.energy, theta=run_config.theta, shower_scale=run_config.shower_scale)
        return cls(hard_process)

    def GetHardProcess(self):
        return self.hard_process

    def Fill(self, generator:'PythiaWrapper'):
        self.hard_process.Fill(generator.GetEvent(), generator.GetParticleData(), generator.GetRndm())
        self.hard_process.ForceShower(generator)

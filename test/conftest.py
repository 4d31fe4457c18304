"""
Stand-ins for Pythia8, the HepMC3 converter/writer and the jet finder,
so that the production loop can be tested without the generator.
"""

import pytest

from jetgun.config import RunConfiguration


class FakeParticle:
    """Mimics the handful of Pythia8 Particle methods that we use."""

    def __init__(self, pid, status, px=0., py=0., pz=0., e=0., m=0., col=0, acol=0, mothers=(0, 0)):
        self._id = pid
        self._status = status
        self._p = (px, py, pz, e)
        self._m = m
        self._col = col
        self._acol = acol
        self._mothers = mothers
        self._scale = 0.

    def id(self): return self._id
    def status(self): return self._status
    def isFinal(self): return self._status > 0
    def px(self): return self._p[0]
    def py(self): return self._p[1]
    def pz(self): return self._p[2]
    def e(self): return self._p[3]
    def m(self): return self._m
    def col(self): return self._col
    def acol(self): return self._acol
    def mother1(self): return self._mothers[0]

    def scale(self, value=None):
        if value is None:
            return self._scale
        self._scale = value


class FakeEvent:
    """Mimics Pythia8's Event: entry 0 is the "system" entry."""

    def __init__(self):
        self.reset()

    def reset(self):
        self.particles = [FakeParticle(90, -11)]

    def append(self, pid, status, mother1, mother2, daughter1, daughter2, col, acol, px, py, pz, e, m):
        self.particles.append(FakeParticle(pid, status, px, py, pz, e, m, col, acol, (mother1, mother2)))
        return len(self.particles) - 1

    def size(self):
        return len(self.particles)

    def __getitem__(self, i):
        return self.particles[i]


class FakeParticleData:
    masses = {1: 0.33, 21: 0., 22: 0., 11: 0.000511, 23: 91.1876}
    col_types = {1: 1, -1: -1, 21: 2}
    self_conjugate = {21, 22, 23}

    def m0(self, pid): return self.masses.get(abs(pid), 0.)
    def colType(self, pid): return self.col_types.get(pid, 0)
    def hasAnti(self, pid): return abs(pid) not in self.self_conjugate


class FakeRndm:
    def __init__(self, values=(0.25, 0.5, 0.75)):
        self.values = list(values)
        self.calls = 0

    def flat(self):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class FakeGenerator:
    """
    Scripted generator. Each call to Next() consumes one entry of `results`:
    'ok' (success), 'fail' (failure) or 'eof' (failure, at end of input).
    Once the script runs out, every attempt succeeds. Settings (as Pythia would
    hold them after reading the card) are looked up in `settings`.
    """

    def __init__(self, results=(), fail_init=False, settings=None):
        self.results = list(results)
        self.settings = {key.lower():val for key,val in (settings or {}).items()}
        self.fail_init = fail_init
        self.event = FakeEvent()
        self.particle_data = FakeParticleData()
        self.rndm = FakeRndm()
        self.initialized = False
        self.at_end = False
        self.n_next = 0
        self.n_list = 0
        self.n_stat = 0
        self.showers = []

    def GetMode(self, key): return self.settings[key.lower()]
    def GetParm(self, key): return self.settings[key.lower()]
    def GetFlag(self, key): return self.settings[key.lower()]
    def IsInitialized(self): return self.initialized

    def InitializePythia(self):
        from jetgun.errors import GeneratorInitializationError
        if self.fail_init:
            raise GeneratorInitializationError('Pythia8 initialization failed.')
        self.initialized = True

    def Next(self):
        self.n_next += 1
        result = self.results.pop(0) if self.results else 'ok'
        self.at_end = result == 'eof'
        return result == 'ok'

    def AtEndOfInput(self): return self.at_end
    def GetEvent(self): return self.event
    def GetParticleData(self): return self.particle_data
    def GetRndm(self): return self.rndm
    def ForceTimeShower(self, i_begin, i_end, scale): self.showers.append((i_begin, i_end, scale))
    def ListEvent(self): self.n_list += 1
    def Stat(self): self.n_stat += 1
    def GetSigmaGen(self, i=0): return 1.0e-6
    def GetSigmaErr(self, i=0): return 1.0e-8


class FakeGun:
    """
    Fills the event with a fixed list of particles, or with the next entry of
    `contents` when a per-event script is given.
    """

    def __init__(self, contents=None):
        self.contents = list(contents) if contents is not None else None
        self.n_fill = 0

    def Fill(self, generator):
        self.n_fill += 1
        event = generator.GetEvent()
        event.reset()
        particles = [(22, 1, 10., 0., 0., 10.), (22, 1, -10., 0., 0., 10.)]
        if self.contents:
            particles = self.contents.pop(0)
        for pid, status, px, py, pz, e in particles:
            event.append(pid, status, 0, 0, 0, 0, 0, 0, px, py, pz, e, 0.)


class FakeJetSet:
    def __init__(self, n=1):
        self.n = n

    def __len__(self): return self.n
    def GetDescription(self): return 'Longitudinally invariant anti-kt algorithm with R = 0.4'
    def GetStrategy(self): return 'N2Plain'

    def GetPmu(self):
        import numpy as np
        return np.tile([50., 30., 40., 0.], (self.n, 1))

    def GetPmuCyl(self):
        import numpy as np
        return np.tile([50., 0., 0.927295, 0.], (self.n, 1))


class FakeJetFinder:
    def __init__(self):
        self.inputs = []

    def Cluster(self, momenta):
        self.inputs.append(momenta)
        return FakeJetSet(n=len(momenta))


class FakePersistence:
    """Records what the loop asks of the persistence step."""

    def __init__(self, fail_on=None, fail_finalize=False):
        self.persisted = []
        self.n_finalize = 0
        self.fail_on = fail_on
        self.fail_finalize = fail_finalize

    def Persist(self, generator, jet_set, event_number):
        from jetgun.errors import PersistenceError
        if self.fail_on is not None and len(self.persisted) == self.fail_on:
            raise PersistenceError('disk full')
        self.persisted.append(event_number)

    def Finalize(self):
        from jetgun.errors import PersistenceError
        self.n_finalize += 1
        if self.fail_finalize:
            raise PersistenceError('could not close output')


class FakeGenEvent:
    def __init__(self):
        self.cleared = False
        self.event_number = None

    def clear(self):
        self.cleared = True


class FakeConverter:
    def __init__(self, fail=False):
        self.fail = fail
        self.events = []
        self.jets = []

    def NewEvent(self):
        hepev = FakeGenEvent()
        self.events.append(hepev)
        return hepev

    def fill_next_event(self, generator, hepev, ievnum=None):
        if self.fail:
            raise RuntimeError('conversion failed')
        hepev.event_number = ievnum

    def AddJets(self, hepev, jet_name, pmu):
        self.jets.append((jet_name, len(pmu)))


class FakeWriter:
    def __init__(self, fail=False, fail_close=False, filename='events.hepmc'):
        self.fail = fail
        self.fail_close = fail_close
        self.filename = filename
        self.written = []
        self.n_close = 0

    def GetFilename(self): return self.filename

    def Write(self, hepev):
        if self.fail:
            raise OSError('No space left on device')
        self.written.append(hepev.event_number)

    def Close(self):
        self.n_close += 1
        if self.fail_close:
            raise OSError('close failed')


def make_run_configuration(n_events=10, n_abort=3, **kwargs):
    values = dict(
        n_events=n_events,
        n_abort=n_abort,
        gun_id=21,
        energy=500.,
        at_rest=True,
        color_singlet=False,
        theta=1.5707963,
        shower_scale=500.,
    )
    values.update(kwargs)
    return RunConfiguration(**values)


@pytest.fixture
def run_configuration():
    return make_run_configuration()


@pytest.fixture
def settings_card(tmp_path):
    card = tmp_path / 'gun.cmnd'
    card.write_text(
        '! A particle-gun card\n'
        'Main:numberOfEvents = 25      ! number of events\n'
        'Main:timesAllowErrors = 4\n'
        'Main:spareMode1 = 1\n'
        'Main:spareParm1 = 100.\n'
        'Main:spareFlag1 = on\n'
        'Main:spareFlag2 = off\n'
        'Main:spareParm2 = 0.5\n'
        'Main:spareParm3 = 100.   # shower scale\n'
        'ProcessLevel:all = off\n'
    )
    return card

from enum import Enum
from typing import TYPE_CHECKING
from jetgun.errors import PersistenceError
from jetgun.qol_util import printProgressBarColor

if TYPE_CHECKING: # Only imported during type checking -- avoids risk of circular imports, limits unnecessary imports
    from jetgun.config import RunConfiguration
    from jetgun.jets import JetFinder, JetSet
    from jetgun.particle_selection import FinalStateSelector
    from jetgun.persistence import EventPersistence
    from jetgun.pythia.gun import ParticleGun
    from jetgun.pythia.utils import PythiaWrapper

class GenerationOutcome(Enum):
    SUCCESS = 'success'
    END_OF_INPUT = 'end_of_input'
    RECOVERABLE_FAILURE = 'recoverable_failure'
    FATAL = 'fatal'

class LoopState(Enum):
    INITIALIZING = 'initializing'
    RUNNING = 'running'
    COMPLETED = 'completed'
    ABORTED = 'aborted'

class RunStatistics:
    """
    Counters for a single run. Only the production loop and the
    generation attempt controller are supposed to modify these.
    """
    def __init__(self):
        self.n_attempts = 0
        self.n_aborts = 0 # cumulative, never reset
        self.n_persisted = 0
        self.n_skipped = 0
        self.end_of_input = False

    def Print(self):
        print('\n=== Run statistics ===')
        print('\tGeneration attempts:           {}'.format(self.n_attempts))
        print('\tFailed attempts (cumulative):  {}'.format(self.n_aborts))
        print('\tEvents skipped (no particles): {}'.format(self.n_skipped))
        print('\tEvents written:                {}'.format(self.n_persisted))
        if(self.end_of_input): print('\tStopped at the end of the input.')
        print()

class GenerationAttemptController:
    """
    Asks the generator for one event, and decides what a failure means.
    The abort budget is cumulative over the whole run: once the number of
    failed attempts reaches n_abort, the outcome is FATAL.
    """

    def __init__(self, generator:'PythiaWrapper', n_abort:int):
        self.generator = generator
        self.n_abort = n_abort
        self.print_prefix = '[GenerationAttemptController]'

    def Attempt(self, statistics:RunStatistics) -> GenerationOutcome:
        statistics.n_attempts += 1
        if(self.generator.Next()):
            return GenerationOutcome.SUCCESS

        if(self.generator.AtEndOfInput()):
            statistics.end_of_input = True
            self._print('Aborted since reached end of input.')
            return GenerationOutcome.END_OF_INPUT

        statistics.n_aborts += 1
        if(statistics.n_aborts < self.n_abort):
            self._print('Event generation failed, discarding it ({} of {} allowed failures).'.format(statistics.n_aborts,self.n_abort))
            return GenerationOutcome.RECOVERABLE_FAILURE

        self._print('Event generation aborted prematurely, owing to error! ({} failed attempts)'.format(statistics.n_aborts))
        return GenerationOutcome.FATAL

    def _print(self,val):
        print('{}: {}'.format(self.print_prefix,val))
        return

class ProductionLoop:
    """
    The event loop: seed -> generate -> select -> cluster -> persist.
    Every iteration (successful or not) counts towards the requested number
    of events. The output is finalized exactly once, however the loop ends.
    """

    def __init__(self, generator:'PythiaWrapper', gun:'ParticleGun', selector:'FinalStateSelector', jet_finder:'JetFinder', persistence:'EventPersistence', run_config:'RunConfiguration', progress_bar:bool=False):
        self.generator = generator
        self.gun = gun
        self.selector = selector
        self.jet_finder = jet_finder
        self.persistence = persistence
        self.run_config = run_config

        self.controller = GenerationAttemptController(generator, run_config.n_abort)
        self.statistics = RunStatistics()
        self.state = LoopState.INITIALIZING
        self.first_event_listed = False

        self.progress_bar = progress_bar
        self.prefix = 'Generating events:'
        self.suffix = 'Complete'
        self.bl = 50
        self.print_prefix = '[ProductionLoop]'

    def GetState(self) -> LoopState:
        return self.state

    def GetStatistics(self) -> RunStatistics:
        return self.statistics

    def Run(self) -> LoopState:
        """
        Runs the loop to completion. Generator initialization failures are raised
        before anything is written. A PersistenceError ends the run: the output is
        still (best-effort) finalized, and the error is raised afterwards.
        """
        self.state = LoopState.INITIALIZING
        if(not self.generator.IsInitialized()):
            self.generator.InitializePythia()

        self.state = LoopState.RUNNING
        try:
            self._loop()
        except Exception:
            self.state = LoopState.ABORTED
            self._finalize(best_effort=True)
            raise
        self._finalize()
        return self.state

    def _loop(self):
        n_events = self.run_config.n_events
        for i in range(n_events):
            self.gun.Fill(self.generator)
            outcome = self.controller.Attempt(self.statistics)

            if(outcome == GenerationOutcome.END_OF_INPUT):
                self.state = LoopState.COMPLETED
                return
            if(outcome == GenerationOutcome.FATAL):
                self.state = LoopState.ABORTED
                return
            if(outcome == GenerationOutcome.SUCCESS):
                self._process_event(i)
            if(self.progress_bar): printProgressBarColor(i+1, n_events, prefix=self.prefix, suffix=self.suffix, length=self.bl)

        self.state = LoopState.COMPLETED

    def _process_event(self, iteration:int):
        momenta = self.selector(self.generator.GetEvent())
        if(len(momenta) == 0):
            self._print('Error: event with no final state particles (iteration {}), skipping it.'.format(iteration))
            self.statistics.n_skipped += 1
            return

        jet_set = self.jet_finder.Cluster(momenta)
        self.persistence.Persist(self.generator, jet_set, self.statistics.n_persisted)
        self.statistics.n_persisted += 1

        if(not self.first_event_listed):
            self._list_first_event(jet_set)

    def _list_first_event(self, jet_set:'JetSet'):
        self.first_event_listed = True
        self.generator.ListEvent()
        print('Ran {}'.format(jet_set.GetDescription()))
        print('Strategy adopted by FastJet was {}\n'.format(jet_set.GetStrategy()))

    def _finalize(self, best_effort:bool=False):
        try:
            self.persistence.Finalize()
        except PersistenceError as e:
            if(not best_effort):
                self.state = LoopState.ABORTED
                self._report()
                raise
            self._print('Error: {}'.format(e))
        self._report()

    def _report(self):
        self.generator.Stat()
        self.statistics.Print()

    def _print(self,val):
        print('{}: {}'.format(self.print_prefix,val))
        return

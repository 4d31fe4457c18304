"""
End-to-end test of run.py, with the real generator and HepMC3 bindings.
Skipped where these are not installed.
"""

import filecmp

import h5py as h5
import numpy as np
import pytest

pytest.importorskip('pythia8mc')
pytest.importorskip('pyHepMC3')
pytest.importorskip('fastjet')

import run  # noqa: E402
from jetgun.hepmc.hepmc import ExtractHepMCEvents, GetJetAttributes  # noqa: E402


def write_card(path, n_events=3, color_singlet='off', separator=' = '):
    lines = [
        ('Main:numberOfEvents', n_events),
        ('Main:timesAllowErrors', 5),
        ('Main:spareMode1', 21),
        ('Main:spareParm1', '100.'),
        ('Main:spareFlag1', 'on'),
        ('Main:spareFlag2', color_singlet),
        ('Main:spareParm2', 1.5707963),
        ('Main:spareParm3', '100.'),
        ('ProcessLevel:all', 'off'),
        ('HadronLevel:all', 'on'),
    ]
    path.write_text(''.join('{}{}{}\n'.format(key, separator, val) for key, val in lines))
    return path


class TestRun:
    """Tests for the full production chain."""

    @pytest.mark.parametrize('color_singlet', ['off', 'on'])
    def test_produces_events_and_jets(self, tmp_path, color_singlet):
        card = write_card(tmp_path / 'gun.cmnd', color_singlet=color_singlet)
        outfile = str(tmp_path / 'events.hepmc')

        assert run.main(['run.py', str(card), outfile, '13', '-pb', '0']) == 0

        with h5.File(str(tmp_path / 'events_jets.h5'), 'r') as f:
            n_persisted = f['event_idx'].shape[0]
            assert 1 <= n_persisted <= 3
            assert (f['AntiKt04GenJets.N'][:] > 0).all()
            assert int(f.attrs['Metadata.PythiaRandomSeed']) == 13
            n_jets = int(f['AntiKt04GenJets.N'][0])
            first_jets = f['AntiKt04GenJets.Pmu'][0, :min(n_jets, 20)]

        events = ExtractHepMCEvents(outfile)
        assert len(events) == n_persisted

        # The HepMC3 attributes are in MeV, the jet summary in GeV.
        jets = GetJetAttributes(events[0], 'AntiKt04GenJets')
        assert len(jets) == n_jets
        np.testing.assert_allclose(jets[:len(first_jets)] / 1000., first_jets, rtol=1.0e-4)

    def test_card_without_equal_signs(self, tmp_path):
        card = write_card(tmp_path / 'gun.cmnd', n_events=2, separator=' ')
        outfile = str(tmp_path / 'events.hepmc')

        assert run.main(['run.py', str(card), outfile, '5', '-pb', '0']) == 0
        with h5.File(str(tmp_path / 'events_jets.h5'), 'r') as f:
            assert 1 <= f['event_idx'].shape[0] <= 2

    def test_same_seed_gives_identical_output(self, tmp_path):
        """Test that a fixed card and seed reproduce the output store byte for byte."""
        card = write_card(tmp_path / 'gun.cmnd', n_events=3)
        for name in ['a', 'b']:
            (tmp_path / name).mkdir()
            assert run.main(['run.py', str(card), str(tmp_path / name / 'events.hepmc'), '29', '-pb', '0']) == 0

        for filename in ['events.hepmc', 'events_jets.h5']:
            assert filecmp.cmp(str(tmp_path / 'a' / filename), str(tmp_path / 'b' / filename), shallow=False)

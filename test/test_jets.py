"""
Tests for jet clustering, using the real FastJet library.
"""

import numpy as np
import pytest

from jetgun.jets import JetFinder


def well_separated(pts):
    """Massless momenta (px, py, pz, E) far apart in azimuth, one per requested pT."""
    momenta = []
    for i, pt in enumerate(pts):
        phi = i * 2. * np.pi / len(pts)
        momenta.append([pt * np.cos(phi), pt * np.sin(phi), 0., pt])
    return np.array(momenta)


class TestJetFinder:
    """Tests for JetFinder."""

    def test_jets_sorted_by_descending_pt(self):
        """Test that pT {5, 50, 20} comes out as {50, 20, 5}."""
        jet_set = JetFinder(radius=0.4).Cluster(well_separated([5., 50., 20.]))

        assert len(jet_set) == 3
        np.testing.assert_allclose(jet_set.GetPt(), [50., 20., 5.])

    def test_nearby_particles_are_merged(self):
        """Test that two collinear particles end up in one jet."""
        momenta = np.array([
            [10., 0., 0., 10.],
            [10., 0.1, 0., np.hypot(10., 0.1)],
            [-30., 0., 0., 30.],
        ])
        jet_set = JetFinder(radius=0.4).Cluster(momenta)

        assert len(jet_set) == 2
        assert jet_set.GetPt()[0] == pytest.approx(30.)
        assert jet_set.GetPmu()[1, 0] == pytest.approx(10. + np.hypot(10., 0.1))

    def test_empty_input_raises(self):
        """Test that clustering requires at least one particle."""
        with pytest.raises(ValueError, match='at least one input'):
            JetFinder().Cluster(np.empty((0, 4)))

    def test_unknown_algorithm_raises(self):
        """Test that an unknown algorithm name is rejected."""
        with pytest.raises(ValueError, match='not understood'):
            JetFinder(jet_algorithm='siscone').Cluster(well_separated([10.]))

    def test_clustering_is_deterministic(self):
        """Test that the same input gives the same jets."""
        rng = np.random.default_rng(1)
        pt = rng.uniform(1., 100., 30)
        phi = rng.uniform(-np.pi, np.pi, 30)
        pz = rng.uniform(-50., 50., 30)
        momenta = np.vstack((pt * np.cos(phi), pt * np.sin(phi), pz, np.sqrt(pt**2 + pz**2))).T

        jet_finder = JetFinder()
        first = jet_finder.Cluster(momenta).GetPmu()
        second = jet_finder.Cluster(momenta).GetPmu()
        np.testing.assert_array_equal(first, second)

    def test_description_and_strategy(self):
        """Test that the jet definition and strategy are reported."""
        jet_set = JetFinder(radius=0.4).Cluster(well_separated([10., 20.]))

        assert 'anti-kt' in jet_set.GetDescription()
        assert 'R = 0.4' in jet_set.GetDescription()
        assert isinstance(jet_set.GetStrategy(), str)
        assert jet_set.GetStrategy() != ''

    def test_pmu_formats(self):
        """Test the cartesian (E, px, py, pz) and cylindrical (pt, eta, phi, m) outputs."""
        jet_set = JetFinder().Cluster(np.array([[30., 40., 0., 50.]]))

        np.testing.assert_allclose(jet_set.GetPmu()[0], [50., 30., 40., 0.])
        pt, eta, phi, m = jet_set.GetPmuCyl()[0]
        assert pt == pytest.approx(50.)
        assert eta == pytest.approx(0., abs=1e-9)
        assert phi == pytest.approx(np.arctan2(40., 30.))
        assert m == pytest.approx(0., abs=1e-6)

    def test_radius_from_configurator(self):
        """Test that the radius can be overridden when built from the configuration."""
        from jetgun.config import Configurator
        configurator = Configurator({
            'generation': {},
            'reconstruction': {'jet_algorithm': 'anti_kt', 'jet_radius': 0.4, 'jet_name': 'Jets', 'n_jets_max': 5},
            'output': {},
        })
        jet_finder = JetFinder.FromConfigurator(configurator, radius=1.0)

        assert jet_finder.GetJetName() == 'Jets'
        assert jet_finder.GetNJetsMax() == 5
        assert 'R = 1' in jet_finder.GetDescription()
        assert 'FastJet' in jet_finder.GetCitations()

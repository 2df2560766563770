import pytest
import numpy as np

from neural_qsir.dataset import QSIRSyntheticDataset


class Config:
    def __init__(self):
        self.population = 100_000.0
        self.initial_state = (99_000.0, 1_000.0, 0.0, 0.0)
        self.beta = 0.5
        self.gamma = 0.1
        self.delta = 0.05
        self.quarantine = 0.3
        self.num_days = 40
        self.noise_std = 0.0
        self.death_fraction = 0.0
        self.seed = 1234


@pytest.fixture
def basic_config():
    return Config()


def test_synthetic_dataset_initialization(basic_config):
    dataset = QSIRSyntheticDataset(basic_config)
    assert dataset.t.shape == (40,)
    assert dataset.true_y.shape == (40, 4)
    np.testing.assert_allclose(dataset.true_y[0], basic_config.initial_state)


def test_noise_free_observations_follow_trajectory(basic_config):
    dataset = QSIRSyntheticDataset(basic_config)
    series = dataset.observations()
    np.testing.assert_allclose(np.asarray(series.infected), dataset.true_y[:, 1])
    np.testing.assert_allclose(np.asarray(series.removed), dataset.true_y[:, 2])


def test_quarantined_compartment_fills(basic_config):
    dataset = QSIRSyntheticDataset(basic_config)
    assert dataset.true_y[-1, 3] > 0.0
    # Without quarantine the compartment stays empty.
    basic_config.quarantine = 0.0
    dataset = QSIRSyntheticDataset(basic_config)
    np.testing.assert_allclose(dataset.true_y[:, 3], 0.0, atol=1e-8)


def test_death_fraction_splits_removed(basic_config):
    basic_config.death_fraction = 0.25
    series = QSIRSyntheticDataset(basic_config).observations()
    removed = np.asarray(series.removed)
    np.testing.assert_allclose(np.asarray(series.dead), 0.25 * removed)


def test_noise_is_seeded(basic_config):
    basic_config.noise_std = 0.05
    first = QSIRSyntheticDataset(basic_config).observations()
    second = QSIRSyntheticDataset(basic_config).observations()
    np.testing.assert_array_equal(np.asarray(first.infected), np.asarray(second.infected))
    assert np.all(np.asarray(first.infected) >= 0.0)

    clean = QSIRSyntheticDataset(Config()).observations()
    assert not np.allclose(np.asarray(first.infected), np.asarray(clean.infected))


def test_invalid_death_fraction(basic_config):
    basic_config.death_fraction = 1.5
    with pytest.raises(ValueError):
        QSIRSyntheticDataset(basic_config)

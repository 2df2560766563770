import jax
import pytest

# Trainer.fit switches to double precision as well; the tests build models directly.
jax.config.update("jax_enable_x64", True)


@pytest.fixture
def population():
    return 100_000.0


@pytest.fixture
def initial_state(population):
    return (population - 1_100.0, 1_000.0, 100.0, 0.0)

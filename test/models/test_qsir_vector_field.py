import pytest
import numpy as np
import jax
import jax.numpy as jnp
import jax.random as jr

from neural_qsir.models.neural_nets import QuarantineNet
from neural_qsir.models.vector_fields import ConstantQuarantine, QSIRVectorField


@pytest.fixture
def constant_field(population):
    return QSIRVectorField(
        beta=0.5,
        gamma=0.1,
        delta=0.05,
        quarantine=ConstantQuarantine(0.3),
        population=population,
    )


@pytest.fixture
def neural_field(population):
    return QSIRVectorField(
        beta=0.5,
        gamma=0.1,
        delta=0.05,
        quarantine=QuarantineNet(population=population, key=jr.PRNGKey(0)),
        population=population,
    )


def test_canonical_form(constant_field, population):
    S, I, R, Q = 80_000.0, 10_000.0, 5_000.0, 2_000.0
    dydt = constant_field(0.0, jnp.array([S, I, R, Q]), None)

    infection = 0.5 * S * I / population
    expected = [
        -infection,
        infection - 0.1 * I - 0.3 * I,
        0.1 * I,
        0.3 * I - 0.05 * Q,
    ]
    np.testing.assert_allclose(np.asarray(dydt), expected, rtol=1e-12)


def test_derivatives_finite_and_susceptibles_never_increase(neural_field, population):
    key = jr.PRNGKey(42)
    states = jr.uniform(key, (256, 4), minval=0.0, maxval=population)
    dydt = jax.vmap(lambda y: neural_field(0.0, y, None))(states)

    assert dydt.shape == (256, 4)
    assert np.all(np.isfinite(np.asarray(dydt)))
    assert np.all(np.asarray(dydt[:, 0]) <= 0.0)


def test_quarantine_breaks_conservation(constant_field):
    # d(S + I + R + Q)/dt = -delta * Q: the total is not conserved once Q > 0.
    y = jnp.array([80_000.0, 10_000.0, 5_000.0, 2_000.0])
    dydt = constant_field(0.0, y, None)
    np.testing.assert_allclose(float(jnp.sum(dydt)), -0.05 * 2_000.0, rtol=1e-10)


def test_negative_overshoot_is_clamped(constant_field):
    # A negative infected count must not drive the other compartments.
    y = jnp.array([80_000.0, -50.0, 5_000.0, -10.0])
    dydt = constant_field(0.0, y, None)
    np.testing.assert_allclose(np.asarray(dydt), [0.0, 0.0, 0.0, 0.0], atol=1e-12)


def test_negative_rates_act_as_magnitudes(population):
    field = QSIRVectorField(
        beta=-0.5,
        gamma=-0.1,
        delta=-0.05,
        quarantine=ConstantQuarantine(0.3),
        population=population,
    )
    y = jnp.array([80_000.0, 10_000.0, 5_000.0, 2_000.0])
    assert float(field(0.0, y, None)[0]) < 0.0
    assert field.parameters == pytest.approx({"beta": 0.5, "gamma": 0.1, "delta": 0.05})


def test_quarantine_strength(constant_field):
    y = jnp.array([80_000.0, 10_000.0, 5_000.0, 2_000.0])
    assert float(constant_field.quarantine_strength(y)) == pytest.approx(0.3)


def test_invalid_population():
    with pytest.raises(ValueError):
        QSIRVectorField(0.5, 0.1, 0.05, ConstantQuarantine(0.3), population=0.0)

from pygame.math import Vector3
from pytest import approx

from morphoswarm.sim.systems.boundary import apply_boundary, fixed_boundary, outside, periodic_boundary
from morphoswarm.sim.systems.kinematics import clamp_magnitude, integrate


def test_clamp_magnitude_caps_length_and_keeps_direction():
    clamped = clamp_magnitude(Vector3(30, 40, 0), 5.0)
    assert clamped.length() == approx(5.0)
    assert (clamped.x, clamped.y, clamped.z) == approx((3.0, 4.0, 0.0))


def test_clamp_magnitude_short_vector_is_copied_unchanged():
    vector = Vector3(1, 2, 2)
    clamped = clamp_magnitude(vector, 10.0)
    assert clamped == vector
    assert clamped is not vector


def test_clamp_magnitude_is_idempotent():
    once = clamp_magnitude(Vector3(-7, 3, 12), 4.0)
    twice = clamp_magnitude(once, 4.0)
    assert (twice.x, twice.y, twice.z) == approx((once.x, once.y, once.z))


def test_clamp_to_zero_limit():
    assert clamp_magnitude(Vector3(1, 1, 1), 0.0).length() == approx(0.0)


def test_periodic_boundary_wraps_outside_axes():
    wrapped = periodic_boundary(Vector3(350, 10, -350), 300.0)
    assert (wrapped.x, wrapped.y, wrapped.z) == approx((-250.0, 10.0, 50.0))


def test_periodic_boundary_is_idempotent():
    once = periodic_boundary(Vector3(350, 0, 0), 300.0)
    twice = periodic_boundary(once, 300.0)
    assert twice == once
    assert not outside(twice, 300.0)


def test_fixed_boundary_clips_to_shrunk_cube():
    clipped = fixed_boundary(Vector3(400, -400, 10), 300.0, 25.0)
    assert (clipped.x, clipped.y, clipped.z) == approx((275.0, -275.0, 10.0))


def test_apply_boundary_dispatches_on_policy():
    position = Vector3(400, 0, 0)
    assert apply_boundary(position, "fixed", 300.0, 25.0).x == approx(275.0)
    assert apply_boundary(position, "periodic", 300.0, 25.0).x == approx(-200.0)


def test_outside_checks_every_axis():
    assert not outside(Vector3(300, -300, 0), 300.0)
    assert outside(Vector3(0, 0, -300.5), 300.0)


def test_integrate_is_semi_implicit_euler():
    position, velocity = integrate(Vector3(0, 0, 0), Vector3(1, 0, 0), Vector3(10, 0, 0), 1.0, 5.0)
    assert (velocity.x, velocity.y, velocity.z) == approx((5.0, 0.0, 0.0))
    assert (position.x, position.y, position.z) == approx((5.0, 0.0, 0.0))


def test_integrate_scales_with_time_step():
    position, velocity = integrate(Vector3(1, 1, 1), Vector3(0, 0, 0), Vector3(0, 2, 0), 0.5, 5.0)
    assert velocity.y == approx(1.0)
    assert position.y == approx(1.5)
    assert position.x == approx(1.0)

import math

import numpy as np
import pytest

from trm import stransit
from trm.stransit import (
    StransitError, circleangle, ellipsearc, ellipseangle, integratetransit,
)
from trm.stransit.ring import rfinit, planetangles


def uniform(n):
    return rfinit(n, lambda mu: np.ones_like(mu))


# circleangle

def test_circleangle_value():
    angle = circleangle(np.array([1.]), 1., 1.)
    assert angle[0] == pytest.approx(math.pi/3)


def test_circleangle_homogeneous():
    rng = np.random.default_rng(1)
    r = rng.uniform(0., 2., 200)
    for p, z in [(0.1, 0.5), (0.7, 0.3), (1.5, 2.0), (0.3, 0.0)]:
        ref = circleangle(r, p, z)
        for alpha in (0.01, 3.7, 1000.):
            np.testing.assert_allclose(
                circleangle(alpha*r, alpha*p, alpha*z), ref, atol=1e-9
            )


def test_circleangle_concentric():
    r = np.array([0., 0.05, 0.1, 0.1000001, 0.5, 1.])
    np.testing.assert_array_equal(
        circleangle(r, 0.1, 0.), [math.pi, math.pi, math.pi, 0., 0., 0.]
    )


def test_circleangle_no_overlap():
    r = np.array([0.2, 0.5, 1.])
    p = 0.1
    for z in (1.1, 1.5, 10.):
        assert np.all(circleangle(r, p, z)[r + p <= z] == 0.)

    # continuous as z decreases through r + p
    angle = circleangle(np.array([0.5]), 0.1, 0.6 - 1e-12)
    assert 0. <= angle[0] < 1e-4


def test_circleangle_full_overlap():
    r = np.array([0.01, 0.1, 0.2, 0.3])
    angle = circleangle(r, 0.5, 0.2)
    np.testing.assert_array_equal(angle, math.pi)

    # tangent from inside is still covered
    assert circleangle(np.array([0.3]), 0.5, 0.2)[0] == math.pi


def test_circleangle_planet_inside_annulus():
    r = np.array([0.8, 1.])
    np.testing.assert_array_equal(circleangle(r, 0.1, 0.5), 0.)


def test_circleangle_finite():
    rng = np.random.default_rng(2)
    r = np.concatenate([[0.], rng.uniform(0., 1., 100)])
    for p in (0., 0.1, 1.):
        for z in (0., 0.05, 0.9, 1.1):
            angle = circleangle(r, p, z)
            assert np.all(np.isfinite(angle))
            assert np.all((angle >= 0.) & (angle <= math.pi))


# ellipsearc / ellipseangle

def test_ellipsearc_circle_matches_circleangle():
    r = np.linspace(0.01, 1., 300)
    for a, z in [(0.1, 0.5), (0.3, 0.1), (0.5, 0.5), (0.2, 0.)]:
        np.testing.assert_allclose(
            ellipsearc(r, a, a, z), circleangle(r, a, z), atol=1e-10
        )


def test_ellipsearc_homogeneous():
    r = np.linspace(0.01, 1., 300)
    ref = ellipsearc(r, 0.3, 0.2, 0.5)
    for alpha in (0.1, 2.5, 100.):
        np.testing.assert_allclose(
            ellipsearc(alpha*r, alpha*0.3, alpha*0.2, alpha*0.5), ref,
            atol=1e-10
        )


def test_ellipsearc_on_boundary():
    # the end of the arc lies on the ellipse
    a, b, z = 0.3, 0.2, 0.5
    r = np.array([0.4, 0.55, 0.65])
    angle = ellipsearc(r, a, b, z)
    x, y = r*np.cos(angle), r*np.sin(angle)
    np.testing.assert_allclose(((x-z)/b)**2 + (y/a)**2, 1., rtol=1e-10)


def test_ellipsearc_limits():
    r = np.array([0.05, 0.5, 0.9])
    # circles well clear of the ellipse
    np.testing.assert_array_equal(ellipsearc(r, 0.1, 0.05, 0.7), [0., 0., 0.])
    # small circle wholly inside
    assert ellipsearc(np.array([0.01]), 0.3, 0.2, 0.)[0] == math.pi
    # zero-size spot
    np.testing.assert_array_equal(ellipseangle(r, 0., 0.5), 0.)


def test_ellipseangle_concentric_is_circle():
    r = np.linspace(0.01, 1., 100)
    np.testing.assert_allclose(
        ellipseangle(r, 0.2, 0.), circleangle(r, 0.2, 0.), atol=1e-12
    )


def test_ellipseangle_area():
    # integrating the arcs over annuli gives the projected spot area
    r, f, ootflux0 = uniform(4000)
    a, z = 0.2, 0.5
    b = a*math.sqrt(1. - z**2/(1. - a**2))
    area = (r*f*ellipseangle(r, a, z)).sum()
    assert area == pytest.approx(math.pi*a*b, rel=1e-3)


def test_ellipseangle_finite():
    r = np.linspace(0., 1., 101)
    for a in (0.01, 0.2, 0.9):
        for z in (0., 0.3, 0.99):
            angle = ellipseangle(r, a, z)
            assert np.all(np.isfinite(angle))
            assert np.all((angle >= 0.) & (angle <= math.pi))


# integratetransit

def transit(z, p, r, f, ootflux0, spots=None):
    planetx = np.zeros_like(z)
    planety = z.copy()
    if spots is None:
        spots = [np.empty(0)]*4
    return integratetransit(
        planetx, planety, z, p, ootflux0, r, f, *spots,
        planetangles(r, p, z)
    )


def test_zero_spot_formula():
    z = np.linspace(0., 1.3, 50)
    r, f, ootflux0 = rfinit(300, lambda mu: 1. - 0.6*(1.-mu))
    pa = planetangles(r, 0.1, z)
    answer = transit(z, 0.1, r, f, ootflux0)
    np.testing.assert_allclose(answer, (ootflux0 - pa @ (r*f))/ootflux0,
                               rtol=1e-12)


def test_single_annulus_formula():
    # r = 1, ootflux0 = 1: answer = ootflux0 - sum(f*planetangle)
    r, f = np.array([1.]), np.array([2.])
    z = np.array([0.6, 0.8, 1.2])
    answer = transit(z, 0.5, r, f, 1.)
    pa = planetangles(r, 0.5, z)
    np.testing.assert_allclose(answer, 1. - (f*pa).sum(axis=1), rtol=1e-14)


def test_uniform_disc_scenario():
    p = 0.1
    r, f, ootflux0 = uniform(2000)
    z = np.array([0., 0.05, 0.5, 1.0, 1.5])
    answer = transit(z, p, r, f, ootflux0)
    np.testing.assert_allclose(answer[:3], 1. - p**2, atol=2e-5)
    assert 1. - p**2 < answer[3] < 1.
    assert answer[4] == 1.


def test_monotonic_egress():
    r, f, ootflux0 = rfinit(2000, lambda mu: 1. - 0.5*(1.-mu))
    z = np.linspace(0.95, 1.05, 40)
    answer = transit(z, 0.1, r, f, ootflux0)
    assert np.all(np.diff(answer) >= 0.)


def test_out_of_transit_is_one_with_spots():
    r, f, ootflux0 = rfinit(200, lambda mu: 1. - 0.5*(1.-mu))
    spots = [np.array([0.2, -0.5]), np.array([0.1, 0.4]),
             np.array([0.1, 0.2]), np.array([-0.8, 0.3])]
    z = np.array([1.1, 1.5, 3.])
    answer = transit(z, 0.1, r, f, ootflux0, spots)
    np.testing.assert_array_equal(answer, 1.)


def test_zero_contrast_spot_changes_nothing():
    r, f, ootflux0 = rfinit(300, lambda mu: 1. - 0.5*(1.-mu))
    z = np.linspace(0., 1.2, 30)
    spots = [np.array([0.]), np.array([0.3]), np.array([0.1]), np.array([0.])]
    np.testing.assert_allclose(
        transit(z, 0.1, r, f, ootflux0, spots),
        transit(z, 0.1, r, f, ootflux0), rtol=1e-12
    )


def test_dark_spot_deepens_transit():
    r, f, ootflux0 = uniform(500)
    z = np.array([0., 0.2])
    # spot far from the planet
    spots = [np.array([-0.6]), np.array([-0.4]), np.array([0.1]),
             np.array([-0.8])]
    assert np.all(
        transit(z, 0.1, r, f, ootflux0, spots) <
        transit(z, 0.1, r, f, ootflux0)
    )


def test_occulted_dark_spot_bump():
    # planet over the spot sees more flux than at the mirror position
    r, f, ootflux0 = uniform(1000)
    spots = [np.array([0.]), np.array([0.3]), np.array([0.1]),
             np.array([-0.8])]
    planetx = np.zeros(2)
    planety = np.array([0.3, -0.3])
    z = np.abs(planety)
    answer = integratetransit(
        planetx, planety, z, 0.1, ootflux0, r, f, *spots,
        planetangles(r, 0.1, z)
    )
    assert answer[0] > answer[1]


def test_chunking(monkeypatch):
    r, f, ootflux0 = rfinit(100, lambda mu: 1. - 0.5*(1.-mu))
    z = np.linspace(0., 1.2, 101)
    spots = [np.array([0.]), np.array([0.3]), np.array([0.1]),
             np.array([-0.8])]
    ref = transit(z, 0.1, r, f, ootflux0, spots)
    monkeypatch.setattr(stransit.core, 'CHUNK', 7)
    np.testing.assert_allclose(
        transit(z, 0.1, r, f, ootflux0, spots), ref, rtol=1e-12
    )


# argument checks

def good_args(m=3, n=4, k=1):
    return dict(
        planetx=np.zeros(m), planety=np.zeros(m), z=np.zeros(m), p=0.1,
        ootflux0=1., r=np.linspace(0.1, 1., n), f=np.ones(n),
        spotx=np.zeros(k), spoty=np.zeros(k), spotradius=np.zeros(k),
        spotcontrast=np.zeros(k), planetangle=np.zeros((m,n)),
    )


def test_good_args_accepted():
    assert integratetransit(**good_args()).shape == (3,)


@pytest.mark.parametrize('name, value', [
    ('planetx', [0., 0., 0.]),
    ('planety', np.zeros(3, dtype=np.float32)),
    ('z', np.zeros((3,1))),
    ('planety', np.zeros(4)),
    ('f', np.ones(5)),
    ('spoty', np.zeros(2)),
    ('spotcontrast', np.zeros(0)),
    ('planetangle', np.zeros((3,5))),
    ('planetangle', np.zeros(12)),
    ('p', 'big'),
])
def test_bad_args_rejected(name, value):
    args = good_args()
    args[name] = value
    with pytest.raises(StransitError, match=name):
        integratetransit(**args)


def test_bad_r_rejected():
    with pytest.raises(ValueError):
        circleangle(np.array([1, 2]), 0.1, 0.5)
    with pytest.raises(StransitError):
        ellipseangle(np.ones((2,2)), 0.1, 0.5)

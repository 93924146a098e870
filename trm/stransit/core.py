"""Core routines for the transit of a spotted, limb-darkened star.

The visible face of the star is split into a series of concentric annuli,
each of constant surface brightness, so that the flux blocked by the planet
(and the flux added or removed by spots) reduces to the computation of the
half central angles of the arcs of each annulus lying inside the planet's
disc or inside the ellipse of a foreshortened spot. This makes the problem 1D
with element-wise trig over (times x annuli) arrays, evaluated with numexpr.

The public routines check the shapes and types of their arguments and raise
StransitError on mismatch before any computation is done. Odd geometry
(negative radii, contrasts < -1 etc) is not checked; the results are just
meaningless.
"""

import os
import math
import numpy as np
import numexpr as ne

__all__ = [
    'StransitError', 'circleangle', 'ellipsearc', 'ellipseangle',
    'integratetransit',
]

# number of time samples handled per vectorised block in integratetransit
CHUNK = int(os.environ.get('STRANSIT_CHUNK', 4096))

if 'STRANSIT_NTHREADS' in os.environ:
    ne.set_num_threads(int(os.environ['STRANSIT_NTHREADS']))

class StransitError(ValueError):
    """Raised for bad arguments or model definitions"""
    pass

def _vector(name, arr, ndim=1):
    """Checks that arr is a float64 numpy array of dimension ndim"""
    if not isinstance(arr, np.ndarray):
        raise StransitError(
            f'{name} must be a numpy array, not {type(arr).__name__}'
        )
    if arr.ndim != ndim:
        raise StransitError(
            f'{name} must be {ndim}-dimensional, has shape {arr.shape}'
        )
    if arr.dtype != np.float64:
        raise StransitError(
            f'{name} must have dtype float64, not {arr.dtype}'
        )
    return arr

def _scalar(name, value):
    """Converts value to a float"""
    try:
        return float(value)
    except (TypeError, ValueError):
        raise StransitError(
            f'{name} must be a scalar number, not {value!r}'
        ) from None

def _length(name, arr, n, what):
    if arr.shape[0] != n:
        raise StransitError(
            f'{name} has length {arr.shape[0]}, but {what} has length {n}'
        )

def circleangle(r, p, z):
    """Computes the half central angle of the arc of each circle of radius
    r[i] (an annulus concentric with the star) that lies inside a circle of
    radius p (the planet) whose centre is at distance z.

    This is a zeroth order homogeneous function, i.e.
    circleangle(alpha*r, alpha*p, alpha*z) = circleangle(r, p, z).

    Arguments::

      r : (array)
         radii of the annuli, 1D float64

      p : (float)
         radius of the other circle

      z : (float)
         separation of the centres

    All should be non-negative. Tangent configurations are closed: an annulus
    with r <= p - z gives pi, z >= r + p or z <= r - p gives 0.

    Returns an array of angles in [0, pi], same size as r.
    """
    r = _vector('r', r)
    return _circleangle(r, _scalar('p', p), _scalar('z', z))

def _circleangle(r, p, z):
    """circleangle without argument checks. z can be a scalar or an array
    of the same shape as r"""
    pi = math.pi
    cost = ne.evaluate('(z*z + r*r - p*p)/(2.*z*r)')
    return ne.evaluate(
        'where(r <= p - z, pi,'
        ' where((z >= r + p) | (z <= r - p), 0.,'
        ' arccos(where(cost > 1., 1., where(cost < -1., -1., cost)))))'
    )

def ellipsearc(r, a, b, z):
    """Computes the half angular measure of the part of each circle of radius
    r[i] that lies inside an ellipse of semi-axes a (perpendicular to the
    line of centres) and b (along it), whose centre lies a distance z from
    the centre of the circles.

    Because the centre of the circles lies on the line of the b axis, the
    points of a circle at angle phi from the line of centres are inside the
    ellipse where a quadratic in cos(phi) is negative. This is solved in
    closed form, so there is no iteration. The result is homogeneous of
    zeroth order in (r, a, b, z).

    Arguments::

      r : (array)
         radii of the circles

      a : (float)
         semi-axis of the ellipse perpendicular to the line of centres

      b : (float)
         semi-axis along the line of centres, 0 <= b <= a

      z : (float)
         separation of centres

    Returns an array of angles in [0, pi], same size as r.
    """
    r = _vector('r', r)
    return _ellipsearc(r, _scalar('a', a), _scalar('b', b), _scalar('z', z))

def _ellipsearc(r, a, b, z):

    if a == 0.:
        return np.zeros_like(r)

    # with u = cos(phi), a point of the circle is inside the ellipse when
    # qa*u**2 + qb*u + qc <= 0
    asq, bsq = a*a, b*b
    qa = ne.evaluate('r*r*(asq-bsq)')
    qb = ne.evaluate('-2.*r*z*asq')
    qc = ne.evaluate('z*z*asq + r*r*bsq - asq*bsq')

    with np.errstate(divide='ignore', invalid='ignore'):

        disc = qb**2 - 4.*qa*qc
        sdisc = np.sqrt(np.maximum(disc, 0.))

        # numerically stable roots; qb <= 0 so q >= 0
        q = 0.5*(sdisc - qb)
        root1 = np.where(qa > 0., q/qa, 0.)
        root2 = np.where(q > 0., qc/q, 0.)

        # linear case (a == b): inside for u >= ulin
        ulin = np.where(qb < 0., -qc/qb, 0.)

    quad = qa > 0.
    u1 = np.where(quad, np.minimum(root1, root2), ulin)
    u2 = np.where(quad, np.maximum(root1, root2), 1.)

    angle = np.arccos(np.clip(u1, -1., 1.)) - np.arccos(np.clip(u2, -1., 1.))

    # no real roots: never inside. qa = qb = 0: inside everywhere or nowhere
    angle[quad & (disc < 0.)] = 0.
    flat = ~quad & (qb == 0.)
    angle[flat] = np.where(qc[flat] <= 0., math.pi, 0.)
    return angle

def _minor(a, z):
    """Projected semi-minor axis of a circle of radius a on the unit sphere
    whose plane centre projects to a distance z from the disc centre"""
    if z == 0.:
        return a
    if a*a + z*z >= 1.:
        return 0.
    return a*math.sqrt(1. - z*z/(1. - a*a))

def ellipseangle(r, a, z):
    """Computes the half central angle of the arc of each circle of radius
    r[i] (an annulus concentric with the star) that lies inside an ellipse
    of semi-axes a and b whose centre is at distance z.

    b is calculated from a and z assuming that the ellipse is the projection
    of a circle of radius a on the surface of the (unit radius) star, so
    b = a*sqrt(1 - z**2/(1 - a**2)), and the ellipse is oriented with its
    minor axis pointing at the centre of the circles, as a spot on a sphere
    appears in projection. At z = 0 the ellipse is a circle.

    Arguments::

      r : (array)
         radii of the annuli

      a : (float)
         semi-major axis of the ellipse (spot radius)

      z : (float)
         distance between the centre of the circles and of the ellipse

    Returns an array of angles in [0, pi], same size as r.
    """
    r = _vector('r', r)
    a = _scalar('a', a)
    z = _scalar('z', z)
    return _ellipsearc(r, a, _minor(a, z), z)

def _arcoverlap(phi1, h1, phi2, h2):
    """Half the angular length of the intersection of the arcs of a circle
    centred on angles phi1 and phi2 with half-widths h1 and h2. Arguments
    broadcast against each other."""
    twopi = 2.*math.pi
    d = np.abs(np.mod(phi1 - phi2 + math.pi, twopi) - math.pi)
    hsum = h1 + h2
    hmin2 = 2.*np.minimum(h1, h2)
    near = np.clip(hsum - d, 0., hmin2)
    far = np.clip(hsum - (twopi - d), 0., hmin2)
    return np.minimum(near + far, hmin2)/2.

def integratetransit(planetx, planety, z, p, ootflux0, r, f, spotx, spoty,
                     spotradius, spotcontrast, planetangle):
    """Computes the integrated flux of a star transited by a planet of radius
    p (in stellar radii) at projected positions (planetx, planety),
    normalised to the out-of-transit flux. The integration runs over
    concentric annuli of radii r.

    m is the number of times, n the number of annuli, k the number of spots.

    Arguments::

      planetx, planety : (arrays)
         planet centre, stellar radii, on the sky. planety is the coordinate
         along the transit chord, increasing through transit [m]

      z : (array)
         distance of planet centre from stellar disc centre (cached) [m]

      p : (float)
         planet radius, stellar radii

      ootflux0 : (float)
         out-of-transit flux with no spots, pi*sum(r*f). Only used if k = 0
         (cached)

      r : (array)
         radii of the integration annuli (cached) [n]

      f : (array)
         2 * limb darkening * width of annuli (cached) [n]

      spotx, spoty : (arrays)
         spot centres on the sky, stellar radii [k]

      spotradius : (array)
         spot radii, stellar radii [k]

      spotcontrast : (array)
         fractional brightness difference of each spot relative to the
         photosphere; -1 is black [k]

      planetangle : (array)
         circleangle(r, p, z[i]) for each i (cached) [m,n]

    (cached) marks arguments that could be calculated from the others but
    which are passed in to save time over repeated calls. They are not
    checked for consistency.

    Spots are assumed not to overlap each other.

    Returns the light curve, 1 out of transit [m]
    """

    planetx = _vector('planetx', planetx)
    planety = _vector('planety', planety)
    z = _vector('z', z)
    r = _vector('r', r)
    f = _vector('f', f)
    spotx = _vector('spotx', spotx)
    spoty = _vector('spoty', spoty)
    spotradius = _vector('spotradius', spotradius)
    spotcontrast = _vector('spotcontrast', spotcontrast)
    planetangle = _vector('planetangle', planetangle, 2)
    p = _scalar('p', p)
    ootflux0 = _scalar('ootflux0', ootflux0)

    m, n, k = len(planetx), len(r), len(spotx)
    _length('planety', planety, m, 'planetx')
    _length('z', z, m, 'planetx')
    _length('f', f, n, 'r')
    _length('spoty', spoty, k, 'spotx')
    _length('spotradius', spotradius, k, 'spotx')
    _length('spotcontrast', spotcontrast, k, 'spotx')
    if planetangle.shape != (m,n):
        raise StransitError(
            f'planetangle has shape {planetangle.shape}, expected {(m,n)}'
        )

    return _integratetransit(
        planetx, planety, z, p, ootflux0, r, f, spotx, spoty,
        spotradius, spotcontrast, planetangle
    )

def _integratetransit(planetx, planety, z, p, ootflux0, r, f, spotx, spoty,
                      spotradius, spotcontrast, planetangle):

    m, n, k = len(planetx), len(r), len(spotx)
    answer = np.ones(m)
    if m == 0 or n == 0:
        return answer

    # flux per unit half angle of each annulus
    rf = r*f

    # only samples where the planet reaches the outermost annulus need work
    intr = np.flatnonzero(z < r[-1] + p)

    if k == 0:
        for i1 in range(0, len(intr), CHUNK):
            ind = intr[i1:i1+CHUNK]
            answer[ind] = (ootflux0 - planetangle[ind] @ rf)/ootflux0
        return answer

    # spot geometry: projected distance of the plane centre of each spot,
    # its direction, and its arc on every annulus [k,n]
    spotd = np.sqrt(
        np.maximum(0., (spotx**2 + spoty**2)*(1. - spotradius**2))
    )
    spotphi = np.arctan2(spoty, spotx)
    spotangle = np.array(
        [_ellipsearc(r, a, _minor(a, d), d) for a, d in zip(spotradius, spotd)]
    )

    # out-of-transit flux including spots
    ootflux = ((math.pi + spotcontrast @ spotangle)*rf).sum()

    planetphi = np.arctan2(planety, planetx)
    for i1 in range(0, len(intr), CHUNK):
        ind = intr[i1:i1+CHUNK]
        theta = planetangle[ind]
        phi = planetphi[ind][:,np.newaxis]

        # planet shadow, corrected for the spot parts it covers
        blocked = theta.copy()
        for l in range(k):
            blocked += spotcontrast[l]*_arcoverlap(
                phi, theta, spotphi[l], spotangle[l]
            )

        answer[ind] = 1. - (blocked @ rf)/ootflux

    return answer

"""Sky-projected orbital positions of the planet.

Positions come from the standard series solution of the two-body problem,
written in terms of the mean longitude lambda and the Laplace-Lagrange
elements k = e*cos(omega), h = e*sin(omega) so that nothing is singular at
e = 0. The series is complete to second order in e::

  theta = lambda + 2*(k*sin(lambda) - h*cos(lambda))
          + (5/2)*(k*sin(lambda) - h*cos(lambda))*(k*cos(lambda) + h*sin(lambda))

  R/a = 1 - (k*cos(lambda) + h*sin(lambda)) + (k**2 + h**2)/2
        - [(k*cos(lambda) + h*sin(lambda))**2 - (k*sin(lambda) - h*cos(lambda))**2]/2

where theta is the true longitude. Mid-transit is where theta = pi/2, which
to the same order is lambda = pi/2 - 2*k + 3*k*h/2.
"""

import math
import numpy as np
import numexpr as ne

from .core import _vector, _scalar

def elements(deltaT, period, a, k, h):
    """Computes the orbital coordinates eta and xi at times deltaT relative to
    mid-transit.

    xi is along the direction of motion at mid-transit, eta is the
    perpendicular in-plane coordinate, positive towards the observer. The
    sky position follows as (b*eta/a, xi) for impact parameter b. For a
    circular orbit eta = a*cos(2*pi*deltaT/period), xi =
    a*sin(2*pi*deltaT/period).

    Arguments::

      deltaT : (array)
         times minus the mid-transit epoch

      period : (float)
         orbital period, same units as deltaT

      a : (float)
         semi-major axis [stellar radii]

      k : (float)
         e*cos(omega), omega = argument of periastron

      h : (float)
         e*sin(omega)

    Returns (eta, xi), arrays of the same size as deltaT.
    """
    deltaT = _vector('deltaT', deltaT)
    period = _scalar('period', period)
    a = _scalar('a', a)
    k = _scalar('k', k)
    h = _scalar('h', h)

    lam0 = math.pi/2 - 2.*k + 1.5*k*h
    twopi = 2.*math.pi
    lam = ne.evaluate('lam0 + twopi*deltaT/period')
    cosl, sinl = np.cos(lam), np.sin(lam)

    # e*cos(M) and e*sin(M), M the mean anomaly
    ecm = ne.evaluate('k*cosl + h*sinl')
    esm = ne.evaluate('k*sinl - h*cosl')

    esq = k*k + h*h
    theta = ne.evaluate('lam + 2.*esm + 2.5*esm*ecm')
    rad = ne.evaluate('a*(1. - ecm + esq/2. - (ecm*ecm - esm*esm)/2.)')

    # theta - pi/2 is the angle from the mid-transit point
    eta = ne.evaluate('rad*sin(theta)')
    xi = ne.evaluate('-rad*cos(theta)')
    return (eta, xi)

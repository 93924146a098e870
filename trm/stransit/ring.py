"""Set-up of the annuli covering the face of the star and of the cached
arrays passed to integratetransit.

integratetransit takes several arguments (z, r, f, ootflux0, planetangle)
that could be derived from the others. They are expensive, particularly the
[m,n] planetangle array, but in a fit most parameters change while these do
not. The Cache class keeps them and recomputes them only when the
parameters they depend on change:

  r, f, ootflux0  :  number of annuli and limb darkening
  z, planetangle  :  planet positions, planet radius, r

Spot parameters touch none of them.
"""

import math
import numpy as np

from .core import StransitError, _vector, _scalar, _circleangle

def rfinit(n, limb):
    """Initialises radii and flux weights of n annuli covering the visible
    face of a star of unit radius, using the midpoint rule.

    Arguments::

      n : (int)
         number of annuli

      limb : (callable)
         limb darkening, function of mu (an array) returning the specific
         intensity relative to the centre.

    Returns (r, f, ootflux0) where::

      r : (array)
         radii of the annuli, (i+1/2)/n

      f : (array)
         2 * limb darkening * width of each annulus

      ootflux0 : (float)
         out-of-transit flux with no spots, pi*sum(r*f)
    """
    r = np.linspace(0.5/n, 1.-0.5/n, n)
    mu = np.sqrt(1.-r**2)
    f = (2./n)*np.asarray(limb(mu), dtype=np.float64)*np.ones_like(r)
    return (r, f, math.pi*(r*f).sum())

def planetangles(r, p, z):
    """Returns the [m,n] array of circleangle(r, p, z[i]) for every
    separation z[i], as needed by integratetransit."""
    r = _vector('r', r)
    z = _vector('z', z)
    p = _scalar('p', p)
    if len(z) == 0 or len(r) == 0:
        return np.zeros((len(z),len(r)))
    rr = np.tile(r, (len(z),1))
    zz = np.repeat(z[:,np.newaxis], len(r), axis=1)
    return _circleangle(rr, p, zz)

class Cache(object):
    """
    Holds the cached arguments of integratetransit.

    Attributes::

      r, f, ootflux0 : from rfinit

      z : (array)
         planet-star separations

      planetangle : (array)
         planetangles(r, p, z)

    None of these is checked against the other arguments of
    integratetransit; that is the job of whoever fills the cache.
    """

    def __init__(self):
        self.r, self.f, self.ootflux0 = None, None, None
        self.z, self.planetangle = None, None
        self._rkey = None
        self._pkey = None

    def rings(self, n, limb, key):
        """Returns (r, f, ootflux0), recomputed with rfinit(n, limb) if key
        (anything that identifies the limb darkening) or n has changed."""
        if (n, key) != self._rkey:
            self.r, self.f, self.ootflux0 = rfinit(n, limb)
            self._rkey = (n, key)
            self._pkey = None
        return (self.r, self.f, self.ootflux0)

    def shadow(self, planetx, planety, p):
        """Returns (z, planetangle) for the planet positions planetx, planety
        and radius p, recomputed only if any of them, or the annuli, have
        changed. rings must have been called first."""
        if self.r is None:
            raise StransitError('Cache.rings must be called before Cache.shadow')

        if self._pkey is None or self._pkey[0] != p or \
           not np.array_equal(self._pkey[1], planetx) or \
           not np.array_equal(self._pkey[2], planety):
            self.z = np.sqrt(planetx**2 + planety**2)
            self.planetangle = planetangles(self.r, p, self.z)
            self._pkey = (p, planetx.copy(), planety.copy())

        return (self.z, self.planetangle)

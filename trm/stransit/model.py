"""Sub-module to define a transiting planet across a spotted star for
modelling light curves.

"""

import numpy as np
import numexpr as ne

from .core import StransitError, integratetransit
from .orbit import elements
from .ring import Cache

# first a few helper routines

def load_data(dfile):
    """Loads a data file assumed to be in space-separated
    column form with columns of time, exposure time, flux,
    errors in flux, weights, sub-division factors (ints)

    Returns (ts,tes,fs,fes,ws,nds)
    """
    ts, tes, fs, fes, ws, nds = np.loadtxt(dfile, unpack=True, ndmin=2)
    nds = nds.astype(int)
    print('Loaded',len(ts),'points from',dfile)
    return (ts,tes,fs,fes,ws,nds)

def write_data(fname, ts, tes, fs, fes, ws, nds, comment=''):
    """
    Writes out data in the form read by load_data
    """

    header = """
This file was written by stransit.model.write_data

Columns are time, exposure time (days), flux, error in flux, weighting factor
for chi**2, sub-division factor for exposure smearing.

""" + comment

    np.savetxt(fname, np.column_stack([ts,tes,fs,fes,ws,nds]),
               '%14.9f %9.3e %8.6f %8.6f %6.4f %2d', header=header)

def calc_sfac(fit, fs, fes, ws=None):
    """
    Computes optimum scaling factor given a fit = fit,
    to fluxes fs with errors fes, and weights ws.
    """
    if ws is None: ws = np.ones_like(fs)
    wgts = ws/fes**2
    return (wgts*fit*fs).sum()/(wgts*fit**2).sum()

def expand(ts, tes, nds):
    """Splits each exposure of length tes[i] centred on ts[i] into nds[i]
    equally spaced sub-times. Returns the sub-times, sum(nds) of them."""
    nds = np.asarray(nds, dtype=int)
    ind = np.repeat(np.arange(len(ts)), nds)
    starts = np.cumsum(nds) - nds
    sub = np.arange(nds.sum()) - np.repeat(starts, nds)
    return ts[ind] + tes[ind]*((sub+0.5)/nds[ind]-0.5)

def compress(lnew, nds):
    """Averages a light curve computed at the times returned by expand back
    onto the original exposures."""
    nds = np.asarray(nds, dtype=int)
    starts = np.cumsum(nds) - nds
    return np.add.reduceat(lnew, starts)/nds

class Limb(object):
    """
    Polynomial limb darkening, I(mu)/I(1) = 1 - a1*(1-mu) - a2*(1-mu)**2
    """

    def __init__(self, a1, a2=0.):
        self.a1 = a1
        self.a2 = a2

    def __repr__(self):
        return f'Limb(a1={self.a1!r}, a2={self.a2!r})'

    def __call__(self, mu):
        ommu = 1.-mu
        a1, a2 = self.a1, self.a2
        return ne.evaluate('1. - ommu*(a1+ommu*a2)')

# Parameters common to all models: (typical spread, lower, upper) as used to
# start walkers and for sanity checks. Integer parameters have spread 0.
_TRANSIT = {
    't0' : (0.0001, -1.e10, 1.e10),
    'period' : (0.00001, 0., 1.e5),
    'a' : (0.1, 1., 1000.),
    'b' : (0.01, 0., 2.),
    'p' : (0.001, 0., 1.),
    'k' : (0.001, -1., 1.),
    'h' : (0.001, -1., 1.),
    'limb1' : (0.01, -1., 2.),
    'limb2' : (0.01, -1., 2.),
    'nring' : (0, 1, 100000),
}

def _spots(nspot):
    """Spot parameters spotx#, spoty#, spotr#, spotc# for nspot spots"""
    pars = {}
    for n in range(1,nspot+1):
        pars[f'spotx{n}'] = (0.01, -1., 1.)
        pars[f'spoty{n}'] = (0.01, -1., 1.)
        pars[f'spotr{n}'] = (0.01, 0., 1.)
        pars[f'spotc{n}'] = (0.01, -1., 10.)
    return pars

class Model(dict):

    """Represents a planet transiting a spotted, limb-darkened star. The star
    has unit radius; the planet moves on a Keplerian orbit, positions
    computed with stransit.elements.

    Attributes::

        model : str
           model type, one of 'nospot', 'spot1', 'spot2', 'spot3'
           according to the number of spots

        pnames : list
           names of parameters.

        vnames : list
           names of variable parameters.

    Parameters::

      t0 : float
         time of mid-transit [days]

      period : float
         orbital period [days]

      a : float
         semi-major axis [stellar radii]

      b : float
         impact parameter [stellar radii]

      p : float
         planet radius [stellar radii]

      k, h : float
         e*cos(omega), e*sin(omega)

      limb1, limb2 : float
         limb darkening coefficients, I(mu) = 1 - limb1*(1-mu) -
         limb2*(1-mu)**2

      nring : int
         number of annuli over the face of the star

      spotx#, spoty# : float
         sky position of the centre of spot # (1, 2, ..) on the star, in
         the same frame as the planet, i.e. y along the transit chord
         [stellar radii]

      spotr# : float
         radius of spot # [stellar radii]

      spotc# : float
         contrast of spot #, fractional brightness difference from the
         photosphere (-1 = black)
    """

    PARAMS = {
        'nospot' : dict(_TRANSIT),
        'spot1' : dict(_TRANSIT, **_spots(1)),
        'spot2' : dict(_TRANSIT, **_spots(2)),
        'spot3' : dict(_TRANSIT, **_spots(3)),
    }

    NSPOT = {'nospot' : 0, 'spot1' : 1, 'spot2' : 2, 'spot3' : 3}

    def __init__(self, arg):
        """Given a file with lines like:

        model = spot1 # model type
        p = 0.1 v  # variable parameter
        a = 10. f  # fixed parameter
        nring = 1000 # integer parameter

        (order immaterial) or an equivalent dictionary: {'model' : 'spot1',
        'p' : '0.1 v', ...} this defines the model parameters. Each of these
        will be loaded into a dictionary with two-element list values of the
        form [param, variable] where param is the parameter value and
        variable = True if variable. The parameters are checked against
        Model.PARAMS. The model type is stored separately as an attribute
        'model'.
        """

        self.pnames = []
        self.vnames = []
        self.model = None
        self.cache = Cache()

        if isinstance(arg, str):
            # Read in model from a file
            with open(arg) as fin:
                for line in fin:
                    if not line.startswith('#') and not line.isspace() and \
                            line.find('=') > -1:
                        equals = line.find('=')
                        name = line[:equals].strip()
                        rest = line[equals+1:]
                        hash = rest.find('#')
                        elems = rest[:hash].split() \
                            if hash > -1 else rest.split()
                        self._add(name, elems, line)

        elif isinstance(arg, dict):
            # e.g. from the header of a log file
            for name, value in arg.items():
                self._add(name, str(value).split(), f'{name} = {value}')

        else:
            raise StransitError(
                'Argument was not a string [filename] or a dictionary'
            )

        if self.model is None:
            raise StransitError('No model type defined')

        # check that all the expected parameters are defined
        for pname in Model.PARAMS[self.model]:
            if pname not in self.pnames:
                raise StransitError(
                    f'Model = {self.model} parameter = {pname} is undefined'
                )

        # check that no unexpected parameters are defined
        for pname in self.pnames:
            if pname not in Model.PARAMS[self.model]:
                raise StransitError(
                    f'Parameter = {pname} not recognised for model = {self.model}'
                )

    def _add(self, name, elems, line):
        """Stores one parameter"""
        if name == 'model':
            if len(elems) == 0 or elems[0] not in Model.PARAMS:
                raise StransitError(
                    f'Model type not recognised in line: {line}'
                )
            self.model = elems[0]
            return

        try:
            if len(elems) == 2:
                if elems[1] == 'f':
                    self[name] = [float(elems[0]),False]
                elif elems[1] == 'v':
                    self[name] = [float(elems[0]),True]
                    self.vnames.append(name)
                else:
                    raise StransitError(
                        f'Must specify "f"=fixed or "v"=variable after all float parameters, line: {line}'
                    )
            elif len(elems) == 1:
                self[name] = [int(elems[0]),False]
            else:
                raise StransitError(
                    f'Could not interpret line: {line}'
                )
        except ValueError as err:
            if isinstance(err, StransitError):
                raise
            raise StransitError(
                f'Could not interpret value in line: {line}'
            ) from err

        self.pnames.append(name)

    @property
    def nspot(self):
        return Model.NSPOT[self.model]

    def spots(self):
        """Returns (spotx, spoty, spotradius, spotcontrast) arrays"""
        nums = range(1,self.nspot+1)
        return (
            np.array([self[f'spotx{n}'][0] for n in nums], dtype=np.float64),
            np.array([self[f'spoty{n}'][0] for n in nums], dtype=np.float64),
            np.array([self[f'spotr{n}'][0] for n in nums], dtype=np.float64),
            np.array([self[f'spotc{n}'][0] for n in nums], dtype=np.float64),
        )

    def positions(self, times):
        """Returns (planetx, planety, front), the sky position of the planet
        in stellar radii at each time and a boolean array that is True where
        the planet is in front of the star. planety runs along the transit
        chord, increasing with time through transit.
        """
        a = self['a'][0]
        eta, xi = elements(
            np.asarray(times, dtype=np.float64) - self['t0'][0],
            self['period'][0], a, self['k'][0], self['h'][0]
        )
        return (self['b'][0]*eta/a, xi, eta > 0.)

    def prior(self):
        """
        Returns ln(prior). This is over-ridden in derived classes to add
        prior constraints.
        """
        return 0.

    def adjust(self):
        """
        Meant to be over-ridden in a derived class to adjust some parameters
        in the light of others. Must return True if all is OK.
        """
        return True

    def chisq(self, ts, tes, fs, fes, ws, nds):
        """
        Computes chi**2 of model given times, exposures etc. This
        also sets the maximum value of the fit (attribute 'max').
        It autoscales to give the minimum chi**2.

        Arguments::

          ts : array
             times

          tes : array
             exposure times

          fs : array
             fluxes

          fes : array
             error in fluxes

          ws : array
             weights

          nds : array
             integer sub-division factors
        """

        fit  = self.fit(ts,tes,nds)
        wgt  = ws/fes**2
        sfac = (wgt*fit*fs).sum()/(wgt*fit**2).sum()
        chisq = (wgt*(fs-sfac*fit)**2).sum()
        self.max = fit.max()
        return chisq

    def fit(self, ts, tes, nds):
        """
        Computes the light curve, normalised to 1 out of transit,
        corresponding to input times.

        Arguments::

          ts : array
             mid-times [days]

          tes : array
             exposure times [days]

          nds : array
             integer sub-division factors to smear exposures.
        """

        limb = Limb(self['limb1'][0], self['limb2'][0])
        r, f, ootflux0 = self.cache.rings(
            self['nring'][0], limb, (limb.a1, limb.a2)
        )

        # positions at 'expanded' times to allow for exposure smearing; only
        # those with the planet in front of the star are integrated
        tnew = expand(np.asarray(ts, dtype=np.float64),
                      np.asarray(tes, dtype=np.float64), nds)
        planetx, planety, front = self.positions(tnew)
        planetx, planety = planetx[front], planety[front]

        p = self['p'][0]
        z, planetangle = self.cache.shadow(planetx, planety, p)
        spotx, spoty, spotradius, spotcontrast = self.spots()

        lnew = np.ones_like(tnew)
        lnew[front] = integratetransit(
            planetx, planety, z, p, ootflux0, r, f,
            spotx, spoty, spotradius, spotcontrast, planetangle
        )
        return compress(lnew, nds)

    def cvars(self):
        """
        Returns arrays of values and typical spreads of the variable
        parameters in the order defined by the vnames attribute
        """
        vals   = []
        sigmas = []
        for name in self.vnames:
            vals.append(self[name][0])
            sigmas.append(Model.PARAMS[self.model][name][0])
        return (np.array(vals), np.array(sigmas))

    def update(self, p):
        """
        Updates variable parameters of a model given a vector or values.
        It is assumed that the values in p match the order of the vnames
        attribute.
        """
        for n, name in enumerate(self.vnames):
            self[name][0] = p[n]

    def ok(self):
        """
        Carries out crude checks of parameter values. Comes back with False if
        there is a problem.
        """
        for name in self.pnames:
            low, high = Model.PARAMS[self.model][name][1:]
            if self[name][0] < low or self[name][0] > high:
                return False

        if self['k'][0]**2 + self['h'][0]**2 >= 1. or \
           self['b'][0] >= 1. + self['p'][0]:
            return False

        # spots must be on the visible face
        spotx, spoty, spotradius, spotcontrast = self.spots()
        return bool(np.all(spotx**2 + spoty**2 < 1.))

    def write(self, fobj, prefix=''):
        """
        Writes  model parameters to a file object fobj, with an
        optional prefix
        """
        fobj.write(prefix + 'model = ' + self.model + '\n')
        for name in self.pnames:
            v = self[name]
            if isinstance(v[0],int):
                fobj.write(prefix + name + ' = ' + str(v[0]) + '\n')
            elif v[1]:
                fobj.write(prefix + name + ' = ' + str(v[0]) + ' v\n')
            else:
                fobj.write(prefix + name + ' = ' + str(v[0]) + ' f\n')

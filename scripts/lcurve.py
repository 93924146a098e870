#!/usr/bin/env python

import numpy as np
import matplotlib.pyplot as plt
from trm import stransit
from trm.stransit.ring import rfinit, planetangles

p      = 0.1
a      = 15.
b      = 0.3
period = 3.5
k, h   = 0.01, 0.02
limb   = lambda mu: 1.-0.4*(1.-mu)-0.25*(1.-mu)**2
n      = 1000

spotx  = np.array([0.3, -0.2])
spoty  = np.array([0.2, -0.4])
spotr  = np.array([0.1, 0.15])
spotc  = np.array([-0.6, -0.3])

# cached quantities
r, f, ootflux0 = rfinit(n, limb)
t = np.linspace(-0.12, 0.12, 2000)
eta, xi = stransit.elements(t, period, a, k, h)
planetx, planety = b*eta/a, xi
z = np.sqrt(planetx**2+planety**2)
planetangle = planetangles(r, p, z)

flux = stransit.integratetransit(
    planetx, planety, z, p, ootflux0, r, f,
    spotx, spoty, spotr, spotc, planetangle
)
plain = stransit.integratetransit(
    planetx, planety, z, p, ootflux0, r, f,
    np.empty(0), np.empty(0), np.empty(0), np.empty(0), planetangle
)

plt.plot(t, flux, 'b', label='spotted')
plt.plot(t, plain, 'r--', label='no spots')
plt.legend()
plt.show()

#!/usr/bin/env python

"""
a module to compute the light curve of a planet transiting a limb-darkened
star with circular spots. The star is split into concentric annuli, the
planet's orbit is evaluated with a series expansion in the eccentricity.
"""

from .core import *
from .orbit import elements
from . import ring
from . import model

import matplotlib
matplotlib.use('Agg')

import pytest

NOSPOT = """
# uniform disc, central transit
model = nospot
t0 = 0.0 f
period = 3.0 f
a = 10.0 v
b = 0.0 f
p = 0.1 v
k = 0.0 f
h = 0.0 f
limb1 = 0.0 f
limb2 = 0.0 f
nring = 1000
"""

SPOT1 = """
model = spot1
t0 = 0.0 f
period = 3.0 f
a = 10.0 f
b = 0.0 f
p = 0.1 v
k = 0.0 f
h = 0.0 f
limb1 = 0.4 f
limb2 = 0.2 f
nring = 500
spotx1 = 0.0 f   # on the transit chord
spoty1 = 0.3 f
spotr1 = 0.1 v
spotc1 = -0.5 v
"""

@pytest.fixture
def nospot_file(tmp_path):
    path = tmp_path / 'nospot.mod'
    path.write_text(NOSPOT)
    return path

@pytest.fixture
def spot1_file(tmp_path):
    path = tmp_path / 'spot1.mod'
    path.write_text(SPOT1)
    return path

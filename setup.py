from setuptools import setup, find_namespace_packages

""" Setup script for the spotted star transit python module"""

setup(name='trm.stransit',
      version = '1.0.0',
      packages=find_namespace_packages(include=['trm.*']),
      python_requires='>=3.8',
      install_requires=['numpy', 'numexpr', 'matplotlib', 'typer'],
      extras_require={'test' : ['pytest']},

      entry_points = {
          'console_scripts' : [
              'lcmodel=trm.stransit.scripts.lcmodel:app',
              'ppxy=trm.stransit.scripts.ppxy:app',
          ]
      },

      # metadata
      author='Tom Marsh',
      author_email='t.r.marsh@warwick.ac.uk',
      description="Python module for transits of spotted stars",
      url='http://www.astro.warwick.ac.uk/',
      )

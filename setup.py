from setuptools import setup

setup (name = 'periodplot',
       version = '20261019',
       description = 'Convert time series tables into gnuplot scripts, optionally split into calendar periods.',
       package_dir = {'': 'lib/python'},
       packages = ['periodplot'],
       python_requires = '>=3.8',
       install_requires = [
           'arrow',
           'cs.cmdutils>=20250531',
           'cs.logutils',
           'cs.pfx',
           'icontract',
           'numpy',
           'pandas',
           'python-dateutil',
           'scipy',
           'typeguard',
       ],
       extras_require = {
           'spreadsheets': ['odfpy', 'openpyxl'],
           'test': ['pytest'],
       },
       entry_points = {
           'console_scripts': [
               'periodplot = periodplot.cli:main',
           ],
       })

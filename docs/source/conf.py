# Configuration file for the Sphinx documentation builder.
import os
import sys
sys.path.insert(0, os.path.abspath('../../')) # app.py, init.py, models.py and tunetally/ live two levels up
# -- Project information -----------------------------------------------------

project = 'TuneTally'
copyright = '2025, TuneTally contributors'
author = 'TuneTally contributors'
release = '1.0'

# -- General configuration ---------------------------------------------------

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.viewcode',
]

autodoc_member_order = 'bysource'

language = 'en'

# -- Options for HTML output -------------------------------------------------

html_theme = 'alabaster'

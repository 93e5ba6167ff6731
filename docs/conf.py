import os
import sys
from datetime import datetime

sys.path.insert(0, os.path.abspath('..'))

import unifi_firewall_switch  # noqa: E402

project = 'unifi-firewall-switch'
copyright = f'{datetime.now().year}, Tyler Woods'
author = 'Tyler Woods'

release = unifi_firewall_switch.__version__

# -- General configuration ---------------------------------------------------
extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.napoleon',         # Google style docstrings
    'sphinx.ext.intersphinx',
    'sphinx_autodoc_typehints',
]

autodoc_member_order = 'bysource'
autodoc_typehints = 'description'

exclude_patterns = ['_build']

html_theme = 'sphinx_rtd_theme'
html_title = f"{project} Documentation"

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'requests': ('https://requests.readthedocs.io/en/latest/', None),
}

napoleon_google_docstring = True
napoleon_numpy_docstring = False
napoleon_include_private_with_doc = False

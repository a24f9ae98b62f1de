from __future__ import annotations

# -- Project information -----------------------------------------------------
import importlib.metadata

metadata = importlib.metadata.metadata("civiltime")

project = metadata["Name"]
version = metadata["Version"]
release = metadata["Version"]


# -- General configuration ------------------------------------------------

nitpicky = True
nitpick_ignore = [
    ("py:class", "civiltime._math._T"),
    # private building blocks that show up in signatures
    ("py:class", "civiltime._format._DirectiveLike"),
    ("py:class", "civiltime._format.Padding"),
    ("py:class", "civiltime._format.WhenToOutput"),
]
extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.intersphinx",
    "sphinx.ext.napoleon",
    "sphinx_copybutton",
    "enum_tools.autoenum",
]
master_doc = "index"
exclude_patterns = ["_build"]

# -- Options for HTML output ----------------------------------------------

autodoc_member_order = "bysource"
html_theme = "furo"
intersphinx_mapping = {
    "python": ("https://docs.python.org/3", None),
}
toc_object_entries_show_parents = "hide"

"""owl2step command-line tooling.

Converts ifcOWL RDF graphs into ISO-10303-21 STEP physical files.
"""

__version__ = "0.1.0"

"""Language adapters — python, node."""

from geonode_devenv.adapters.languages.node import NodeAdapter
from geonode_devenv.adapters.languages.python import PythonAdapter

__all__ = ["NodeAdapter", "PythonAdapter"]

"""
pylinreg: updatable simple linear regression over external records.

Maintains a persisted y = m*x + b model as five sufficient statistics,
lets callers add and remove observations incrementally, and streams
predictions back onto records that lack an observed value.

Submodules:
    core: protocols, exceptions, validation, result envelope, policies
    regression: accumulator, codec, batch application, model service
    graph: in-memory reference adapter
"""

import logging

__version__ = "0.1.0"

from pylinreg import core
from pylinreg import regression
from pylinreg.regression import predict, RegressionProcedures, ModelService

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "__version__",
    "core",
    "regression",
    "predict",
    "RegressionProcedures",
    "ModelService",
]

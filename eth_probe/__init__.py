__all__ = [
    "ArgumentOrder",
    "ChainReader",
    "Probe",
    "ProbeOutcome",
    "Web3Reader",
    "default_registry",
    "normalize_salt",
    "predict_address",
    "probe",
    "validate_factory",
]

from .networks import default_registry
from .predictor import predict_address
from .prober import ArgumentOrder, Probe, ProbeOutcome, probe
from .reader import ChainReader, Web3Reader
from .salt import normalize_salt
from .validator import validate_factory

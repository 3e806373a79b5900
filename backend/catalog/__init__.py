# Material catalog: evaluations, storage, exchange and search
from .constants import EvaluationType, EvaluationStatus, STATUS_MAP, DEFAULT_CONFIG
from .store import NotFoundError

__all__ = ['EvaluationType', 'EvaluationStatus', 'STATUS_MAP', 'DEFAULT_CONFIG', 'NotFoundError']

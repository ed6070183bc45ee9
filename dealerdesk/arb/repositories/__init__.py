"""ARB repositories package."""
from .arb_repository import ARBRepository, to_case_summary

__all__ = ['ARBRepository', 'to_case_summary']

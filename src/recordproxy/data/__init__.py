"""Caller-side record and operation types."""

from recordproxy.data.model import Field, Model, Record
from recordproxy.data.operation import Filter, Operation, ResultSet, Sorter

__all__ = ["Field", "Filter", "Model", "Operation", "Record", "ResultSet", "Sorter"]

"""Persistence of result bundles behind the ResultStore port."""

from marketing_engine.storage.results_store import (
    ResultStore,
    SqlResultStore,
    get_result_store,
    reset_engine_for_test,
)

__all__ = ["ResultStore", "SqlResultStore", "get_result_store", "reset_engine_for_test"]

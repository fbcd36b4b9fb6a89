"""Top-level package for the household budget tracker.

The primary modules are:

* ``lib`` - the pure pay-date and budget calculation engine
* ``db`` - the SQLite-backed document store with change subscriptions
* ``budget_state`` - the reactive app state that wires the store to the engine
* ``visualization`` - functions that generate Plotly figures
* ``Home`` - a Streamlit app that ties everything together

To run the dashboard from the command line you can execute:

```bash
python run_dashboard.py
```
"""

__all__ = ["lib", "db", "budget_state", "visualization"]

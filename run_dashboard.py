#!/usr/bin/env python3
"""Direct launcher for the Household Budget dashboard.

This script launches Streamlit on household_budget/Home.py with the project
root on the import path.
"""

import os
import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
app_dir = project_root / "household_budget"

if __name__ == "__main__":
    os.chdir(app_dir)
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(project_root), env.get("PYTHONPATH")]))
    result = subprocess.run(
        [sys.executable, "-m", "streamlit", "run", "Home.py", *sys.argv[1:]],
        env=env,
    )
    sys.exit(result.returncode)

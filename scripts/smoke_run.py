"""Automated smoke-run for recipegraph.

Checks:
- loads .env
- runs the CLI `validate`, `layout --json` and `next` commands against every recipe in data/recipes
- expects recipes named broken_* to be refused
- drives a short cooking session with a fast ticker until a timer fires

Usage:
  python scripts/smoke_run.py [--ci]

Exit code: 0 on success (all checks), non-zero if any step fails.
"""

import json
import subprocess
import sys
import threading
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()
ROOT = Path(__file__).resolve().parents[1]
PY = sys.executable
RECIPES = ROOT / 'data' / 'recipes'

sys.path.insert(0, str(ROOT))


def run_cli(args, timeout=60):
    cmd = [PY, '-m', 'recipegraph.cli'] + args
    print("\n>>> Running:", " ".join(cmd))
    p = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout, cwd=ROOT)
    print("--- stdout ---")
    print(p.stdout[:4000])
    if p.stderr:
        print("--- stderr ---")
        print(p.stderr[:4000])
    return p.returncode, p.stdout, p.stderr


def check_recipe(path: Path) -> bool:
    expect_broken = path.name.startswith('broken_')
    rc, _, _ = run_cli(['validate', str(path)])
    if expect_broken:
        if rc == 0:
            print(f'{path.name}: expected validate to fail but it passed')
            return False
        return True
    if rc != 0:
        print(f'{path.name}: validate returned {rc}')
        return False

    rc, out, _ = run_cli(['layout', str(path), '--json'])
    if rc != 0:
        print(f'{path.name}: layout returned {rc}')
        return False
    try:
        plan = json.loads(out)
    except json.JSONDecodeError as e:
        print(f'{path.name}: layout --json did not print JSON: {e}')
        return False
    if len(plan.get('layout', {})) != plan.get('step_count'):
        print(f'{path.name}: layout is missing steps')
        return False

    rc, _, _ = run_cli(['next', str(path)])
    return rc == 0


def check_session(path: Path) -> bool:
    from recipegraph.orchestrate.run import load_recipe, open_session

    recipe = load_recipe(str(path))
    fired = threading.Event()
    first = recipe.steps[0].id
    with open_session(recipe, lambda step_id: fired.set(), tick_interval=0.01) as session:
        # two seconds of timer time
        session.start_timer(first, 2 / 60)
        ok = fired.wait(5.0)
    print(f'\nSession timer for {first} fired?', ok)
    return ok


if __name__ == '__main__':
    ci_mode = '--ci' in sys.argv

    print('Python:', PY)
    print('Project root:', ROOT)

    checks = {}
    for path in sorted(RECIPES.glob('*.json')):
        checks[path.name] = check_recipe(path)

    sample = RECIPES / 'carbonara.json'
    if sample.exists():
        checks['session'] = check_session(sample)
    else:
        print('No carbonara.json sample; skipping session check')

    failed = not all(checks.values())
    if failed:
        print('\nSMOKE RUN: FAIL')
        if ci_mode:
            print(json.dumps({"status": "fail", "checks": checks}))
        sys.exit(2)
    else:
        print('\nSMOKE RUN: SUCCESS')
        if ci_mode:
            print(json.dumps({"status": "success", "checks": checks}))
        sys.exit(0)

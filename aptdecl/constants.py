import os
from pathlib import Path

CONFIG_DIR = Path(os.environ.get('APTDECL_CONFIG_DIR', Path.home() / '.config' / 'aptdecl'))
HOSTS_DIR = CONFIG_DIR / 'hosts'
MODULES_DIR = CONFIG_DIR / 'modules'
CONFIG_FILE = CONFIG_DIR / 'config.yaml'
STATE_FILE = CONFIG_DIR / 'state.yaml'
CHANGES_FILE = CONFIG_DIR / 'changes.yaml'

SPEC_KINDS = ('group', 'package', 'external')

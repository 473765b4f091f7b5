"""
Bundled ABIs of common contracts used to seed the decoder.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

ABI_DIR = Path(__file__).resolve().parent


def load_abi(file_name: str) -> List[Dict[str, Any]]:
    with open(ABI_DIR / file_name, "r") as f:
        return json.load(f)

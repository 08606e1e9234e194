"""
Pytest configuration and fixtures for Tollgate tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest


OWNER = "0x" + "1" * 40
TAX = "0x" + "7" * 40


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_db_path(temp_dir: Path) -> Path:
    """Path for a fresh SQLite database."""
    return temp_dir / "token.db"


@pytest.fixture
def sample_spec_yaml() -> str:
    """Return a taxable, deflationary, capped token spec."""
    return f"""
name: Sample Token
symbol: SMP
initial_supply: 1000000
decimals: 0
owner: "{OWNER}"
capabilities:
  is_mintable: true
  is_burnable: true
  is_document_uri_allowed: true
  is_max_amount_of_tokens_set: true
  is_taxable: true
  is_deflationary: true
max_token_amount_per_address: 2000000
document_uri: "https://example.com/whitepaper.pdf"
tax_address: "{TAX}"
tax_bps: 500
deflation_bps: 200
"""


@pytest.fixture
def plain_spec_yaml() -> str:
    """Return a token spec with every capability disabled."""
    return f"""
name: Plain Token
symbol: PLN
initial_supply: 1000
decimals: 2
owner: "{OWNER}"
"""

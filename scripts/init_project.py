#!/usr/bin/env python3
"""
Check a checkout of the load economics engine before first use.

This script:
- Verifies the Python version
- Loads .env and reports the geocoding key
- Validates config/config.yaml against the typed config sections
- Creates the geocode cache directory when GEOCODE_CACHE_PATH is set
- Confirms required packages import
"""

import os
import sys
from pathlib import Path

import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))


def check_python_version() -> bool:
    """Verify Python version is 3.10 or higher."""
    if sys.version_info < (3, 10):
        print(f"❌ Python 3.10+ required. Current version: {sys.version}")
        return False
    print(f"✅ Python version: {sys.version_info.major}.{sys.version_info.minor}")
    return True


def load_and_validate_env() -> bool:
    """Load environment variables and report the optional geocoding key."""
    env_path = PROJECT_ROOT / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        print("✅ .env file loaded")
    else:
        print("⚠️  .env file not found (copy .env.example to .env)")

    key = os.getenv("GOOGLE_MAPS_API_KEY")
    if not key or key.startswith("your_"):
        print("⚠️  GOOGLE_MAPS_API_KEY not set - routes will have no coordinates")
    else:
        print("✅ GOOGLE_MAPS_API_KEY set")
    return True


def check_config_file() -> bool:
    """Validate config/config.yaml parses and every section is well formed."""
    config_path = PROJECT_ROOT / "config" / "config.yaml"
    if not config_path.exists():
        print(f"⚠️  {config_path} not found - built-in defaults will be used")
        return True

    try:
        with open(config_path) as f:
            yaml.safe_load(f)
    except yaml.YAMLError as e:
        print(f"❌ Error parsing config.yaml: {e}")
        return False

    from pydantic import ValidationError

    from src.core.config import ConfigManager
    from src.core.exceptions import ConfigurationError

    manager = ConfigManager(config_dir=config_path.parent)
    try:
        manager.get_economics_config()
        manager.get_fleet_config()
        manager.get_route_config()
        manager.get_geocoding_config()
        manager.get_access_config()
    except (ConfigurationError, ValidationError) as e:
        print(f"❌ Invalid config.yaml: {e}")
        return False

    print("✅ config.yaml is valid")
    return True


def create_cache_directory() -> bool:
    """Create the parent directory of the on-disk geocode cache, if configured."""
    cache_path = os.getenv("GEOCODE_CACHE_PATH")
    if not cache_path:
        print("✅ Geocode cache is in-memory")
        return True
    Path(cache_path).parent.mkdir(parents=True, exist_ok=True)
    print(f"✅ Geocode cache directory ready: {Path(cache_path).parent}")
    return True


def test_imports() -> bool:
    """Test that critical packages can be imported."""
    required_packages = [
        "pydantic",
        "pydantic_settings",
        "structlog",
        "httpx",
        "yaml",
        "dotenv",
    ]

    missing = []
    for package in required_packages:
        try:
            __import__(package)
        except ImportError:
            missing.append(package)

    if missing:
        print(f"❌ Missing packages: {', '.join(missing)}")
        print("   Run: pip install -e .[test]")
        return False

    print("✅ All required packages installed")
    return True


def main():
    """Run all initialization checks."""
    print("=" * 60)
    print("Load Economics Engine - Initialization")
    print("=" * 60)

    checks = [
        ("Python version", check_python_version),
        ("Package imports", test_imports),
        ("Environment variables", load_and_validate_env),
        ("Configuration file", check_config_file),
        ("Geocode cache", create_cache_directory),
    ]

    passed = 0
    failed = 0

    for name, check_func in checks:
        print(f"\nChecking {name}...")
        if check_func():
            passed += 1
        else:
            failed += 1

    print("\n" + "=" * 60)
    print(f"Results: {passed} passed, {failed} failed")
    print("=" * 60)

    if failed == 0:
        print("\nRun the tests with: pytest")
        return 0
    print("\n❌ Some checks failed. Please fix the issues above.")
    return 1


if __name__ == "__main__":
    sys.exit(main())

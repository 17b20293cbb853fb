"""ShimSwap - anti-tamper library override and restore engine for game installs.

This package provides:
    - Replacing vendor anti-tamper libraries (steam_api.dll, steam_api64.dll)
      inside an installed game with bundled compatibility shims
    - Keeping exactly one backup (``<file>.orig``) of each original library
    - Reverting the override byte-for-byte from those backups
    - Restoring a saved original executable (``<exe>.original.exe``) inside
      an emulated drive
    - Durable per-install markers recording the last completed transition

Package Structure:
    app: Command line entry point and orchestrator
    config: Configuration management, paths, schemas, and path validation
    core: Directory walker, name matcher, marker stores, override engine,
          executable restore and game resolution
    assets: Bundled shim content lookup

Quick Start:
    Run from command line::

        python -m shimswap apply /path/to/game

    Or programmatically::

        from shimswap.core import OverrideEngine, MemoryMarkerStore, TargetSpec
        engine = OverrideEngine(MemoryMarkerStore())
        engine.apply(root, TargetSpec.default(), provider)

Configuration:
    - Config file: $SHIMSWAP_HOME/configuration.xml (default ~/.shimswap)
    - Log file: $SHIMSWAP_HOME/shimswap.log
    - Marker index: $SHIMSWAP_HOME/markers.xml (index marker backend only)
"""

__version__ = "1.0.0"
__app_name__ = "ShimSwap"

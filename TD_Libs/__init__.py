"""
TD_Libs - TdStudio Library Modules

This package contains the core functionality of the TdStudio creative studio,
organized into specialized sub-packages:

- ImageEditingLib: Image adjustment, transform and watermark pipeline
- HistoryStoreLib: Bounded, quota-aware persistence of generated artifacts
- StudioStateLib: Immutable studio state, reducer and effect controller
"""

__version__ = "0.1.0"

# -*- coding: utf-8 -*-
"""
設備巡檢（Crit Walk）追蹤系統
"""

__version__ = "1.0.0"

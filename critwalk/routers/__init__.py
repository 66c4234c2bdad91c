# -*- coding: utf-8 -*-
"""
路由模組
"""

from . import auth
from . import equipment
from . import critwalk
from . import assignments
from . import admin

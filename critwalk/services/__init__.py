# -*- coding: utf-8 -*-
"""
服務層模組
"""
from . import status
from . import storage
from . import equipment_status
from . import equipment
from . import assignment
from . import critwalk
from . import cleanup
from . import auth

# This file is part of dosync. See LICENSE file for license information.

__version__ = "1.0.0"

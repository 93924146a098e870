"""
Scripts sub-module of stransit contains the commands to compute and plot models
"""

__all__ = [ \
            'lcmodel',
            'ppxy',
        ]

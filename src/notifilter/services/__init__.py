"""
Notifilter Services

Long-running service components. The filtering service lives in
notifilter.services.filtering.
"""

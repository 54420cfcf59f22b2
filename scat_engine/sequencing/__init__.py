"""
sequencing/ — module order, completion set and current index
"""

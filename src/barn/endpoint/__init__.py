"""HTTP endpoint for barn.

Routes ``GET /{filename}`` through authorization, process invocation and
output streaming, and wraps every result in the viewer page.
"""

"""content/ -- NEWS articles, job postings, and NEWS categories.

Layer rule: content/ imports only stdlib, third-party libraries, and core/.
Auditing is the route layer's job; stores never write audit entries.
"""

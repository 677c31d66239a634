"""Test package for Cognitive Flux.

Unit tests cover the pure generators, scheduler, repair controller and
rating model; the session tests drive ``FluxSession`` with a fake clock.
The pygame smoke test runs headlessly using SDL's dummy video driver.
To run these tests, execute ``pytest`` from the project root.
"""

# Command-line runners for fiber_mcmc.

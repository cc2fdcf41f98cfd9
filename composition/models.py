"""Built-in interface composition models (importing registers them)."""

# Plain module imports: a built-in module may still be initialising when
# the registry loads this one.
import composition.henry  # noqa: F401
import composition.non_random_two_liquid  # noqa: F401
import composition.raoult  # noqa: F401
import composition.saturated  # noqa: F401

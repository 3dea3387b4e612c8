"""Pure-JAX environment module.

Quick start::

    from prioritized_dqn.env import Game

    game = Game.make("Catch-v0", seed=0)
    obs = game.start()
    obs, reward, terminal = game.step(1, training=True)
"""

from prioritized_dqn.env.base import Environment, EnvParams, EnvState
from prioritized_dqn.env.catch import Catch, CatchParams, CatchState
from prioritized_dqn.env.game import Game
from prioritized_dqn.env.spaces import Box, Discrete

# ---- Registry ----

_REGISTRY: dict[str, type[Environment]] = {
    "Catch-v0": Catch,
}


def register(name: str, cls: type[Environment]) -> None:
    """Register a custom environment class under *name*."""
    _REGISTRY[name] = cls


def make(name: str, **kwargs: object) -> tuple[Environment, EnvParams]:
    """Create an environment and its default params by name.

    Returns:
        ``(env, params)`` tuple ready for ``env.reset(key, params)``.
    """
    if name not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown environment {name!r}. Available: {available}")
    env = _REGISTRY[name](**kwargs)
    return env, env.default_params()


__all__ = [
    "Box",
    "Catch",
    "CatchParams",
    "CatchState",
    "Discrete",
    "EnvParams",
    "EnvState",
    "Environment",
    "Game",
    "make",
    "register",
]

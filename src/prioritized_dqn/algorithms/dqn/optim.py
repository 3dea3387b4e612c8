"""Optimizer strategy for the DQN learning step.

An :class:`Objective` evaluates the loss and gradient at a parameter
point; an :class:`Optimizer` turns that gradient into a parameter update.
Both are pure and jit-compatible::

    tx = make_optimizer(config)
    opt_state = tx.init(params)
    params, opt_state, loss, aux = tx.step(objective, params, opt_state)
"""

from __future__ import annotations

from typing import Any, NamedTuple, Protocol

import chex
import equinox as eqx
import jax
import jax.numpy as jnp
import optax

from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.types import OptState, Params, Transition


class Objective(Protocol):
    """Anything that can report ``(loss, grads, aux)`` for given params."""

    def evaluate(self, params: Params) -> tuple[chex.Array, Params, Any]: ...


class TDAux(NamedTuple):
    """Side outputs of :class:`TDObjective`."""

    td_errors: chex.Array
    q_taken: chex.Array


class TDObjective(eqx.Module):
    """Per-action error-signal objective for a batch of transitions.

    ``targets`` are the (already computed, gradient-free) TD targets and
    ``weights`` the importance-sampling weights.  The gradient is the
    pull-back of the negated error signal (zeros everywhere except
    ``w * td`` at the taken action) through the Q-network; the reported
    loss is the mean squared clipped TD-error and does not drive it.
    """

    batch: Transition
    targets: chex.Array
    weights: chex.Array
    td_clip: float = eqx.field(static=True)
    correction: chex.Array | None = None

    def evaluate(self, params: Params) -> tuple[chex.Array, Params, TDAux]:
        batch = self.batch
        actions = batch.action.astype(jnp.int32)

        def surrogate(p):
            q_all = jax.vmap(p)(batch.obs)
            q_taken = q_all[jnp.arange(q_all.shape[0]), actions]
            td = jax.lax.stop_gradient(self.targets - q_taken)
            if self.correction is not None:
                td = td + self.correction
            td = clip_td(td, self.td_clip)
            signal = error_signal(q_all.shape[-1], actions, self.weights * td)
            return -jnp.sum(signal * q_all), TDAux(td_errors=td, q_taken=q_taken)

        (_, aux), grads = eqx.filter_value_and_grad(surrogate, has_aux=True)(params)
        loss = jnp.mean(aux.td_errors ** 2)
        return loss, grads, aux


class Optimizer:
    """Applies an optax gradient transformation to an :class:`Objective`."""

    def __init__(self, tx: optax.GradientTransformation) -> None:
        self.tx = tx

    def init(self, params: Params) -> OptState:
        return self.tx.init(eqx.filter(params, eqx.is_array))

    def step(
        self,
        objective: Objective,
        params: Params,
        opt_state: OptState,
    ) -> tuple[Params, OptState, chex.Array, Any]:
        loss, grads, aux = objective.evaluate(params)
        updates, new_opt_state = self.tx.update(
            grads, opt_state, eqx.filter(params, eqx.is_array)
        )
        new_params = eqx.apply_updates(params, updates)
        return new_params, new_opt_state, loss, aux


def make_optimizer(config: DQNConfig) -> Optimizer:
    """Build the optimizer named by ``config.optimiser``.

    Gradients are clipped to ``config.max_grad_norm`` (global norm) before
    the update.  For RMSprop, ``momentum`` is used as the squared-gradient
    decay rate.
    """
    if config.optimiser == "adam":
        base = optax.adam(config.lr)
    elif config.optimiser == "rmsprop":
        base = optax.rmsprop(config.lr, decay=config.momentum)
    elif config.optimiser == "sgd":
        base = optax.sgd(config.lr, momentum=config.momentum)
    else:
        raise ValueError(f"Unknown optimiser {config.optimiser!r}")
    return Optimizer(
        optax.chain(
            optax.clip_by_global_norm(config.max_grad_norm),
            base,
        )
    )


def clip_td(td: chex.Array, td_clip: float) -> chex.Array:
    """Clip TD-errors to ``[-td_clip, td_clip]``; ``td_clip <= 0`` is a no-op."""
    if td_clip > 0:
        return jnp.clip(td, -td_clip, td_clip)
    return td


def error_signal(n_actions: int, actions: chex.Array, values: chex.Array) -> chex.Array:
    """``(B, n_actions)`` matrix holding *values* at the taken actions, zero elsewhere."""
    return jax.nn.one_hot(actions, n_actions, dtype=values.dtype) * values[:, None]

"""Pure-functional Double DQN learner.

All methods are static pure functions: no mutable state anywhere.
State is threaded explicitly through ``DQNState``.

Usage::

    config = DQNConfig()
    state = DQN.init(rng, obs_shape=(4,), n_actions=2, config=config)
    action, state = DQN.act(state, obs, epsilon)
    state, out = DQN.learn(state, batch, weights, config=config)
    memory.update_priorities(indices, out.td_errors)
    state, synced = DQN.maybe_sync_target(state, step, config=config)
"""

from __future__ import annotations

import math
from functools import partial
from typing import NamedTuple

import chex
import jax
import jax.numpy as jnp

from prioritized_dqn.algorithms.dqn.config import DQNConfig
from prioritized_dqn.algorithms.dqn.network import make_q_network
from prioritized_dqn.algorithms.dqn.optim import TDObjective, clip_td, make_optimizer
from prioritized_dqn.algorithms.dqn.types import DQNState
from prioritized_dqn.schedule import select_action
from prioritized_dqn.types import Params, Transition


class LearnOutput(NamedTuple):
    """Diagnostics of one learning step.

    ``td_errors`` are the clipped per-sample errors to feed back into the
    priority index; ``loss`` is their mean square.
    """

    loss: chex.Array
    td_errors: chex.Array
    q_mean: chex.Array


class DQN:
    """Namespace for DQN pure functions.

    Not instantiated: all methods are static.
    """

    @staticmethod
    def init(
        rng: chex.PRNGKey,
        obs_shape: tuple[int, ...],
        n_actions: int,
        config: DQNConfig,
    ) -> DQNState:
        """Create initial DQN state; the target network starts as a copy."""
        obs_dim = math.prod(obs_shape)
        k1, k2 = jax.random.split(rng)

        q_net = make_q_network(
            obs_dim, n_actions, config.hidden_sizes, dueling=config.dueling, key=k1,
        )
        opt_state = make_optimizer(config).init(q_net)

        return DQNState(
            params=q_net,
            target_params=q_net,
            opt_state=opt_state,
            step=jnp.zeros((), dtype=jnp.int32),
            rng=k2,
        )

    @staticmethod
    @jax.jit
    def q_values(params: Params, obs: chex.Array) -> chex.Array:
        """Q-values for a batch of observations, shape ``(B, n_actions)``."""
        return jax.vmap(params)(obs)

    @staticmethod
    @jax.jit
    def act(
        state: DQNState,
        obs: chex.Array,
        epsilon: float | chex.Array,
    ) -> tuple[chex.Array, DQNState]:
        """Epsilon-greedy action for a single observation (pure function).

        Returns:
            (action, new_state): action is a scalar int array.
        """
        rng, key = jax.random.split(state.rng)
        action = select_action(key, state.params(obs), epsilon)
        return action, state._replace(rng=rng)

    @staticmethod
    def double_q_targets(
        params: Params,
        target_params: Params,
        batch: Transition,
        *,
        gamma: float,
        double_q: bool = True,
    ) -> chex.Array:
        """TD targets ``Y`` for a batch.

        With *double_q* the policy network picks ``argmax_a Q(s', a)`` and
        the target network evaluates it; otherwise the target network does
        both.  Terminal transitions get ``Y = r`` exactly.
        """
        next_q_target = jax.vmap(target_params)(batch.next_obs)
        if double_q:
            a_max = jnp.argmax(jax.vmap(params)(batch.next_obs), axis=-1)
        else:
            a_max = jnp.argmax(next_q_target, axis=-1)
        bootstrap = jnp.take_along_axis(next_q_target, a_max[:, None], axis=-1)[:, 0]
        bootstrap = jax.lax.stop_gradient(bootstrap)
        return jnp.where(batch.done, batch.reward, batch.reward + gamma * bootstrap)

    @staticmethod
    def pal_correction(
        target_params: Params,
        batch: Transition,
        *,
        pal_alpha: float,
    ) -> chex.Array:
        """Additive persistent-advantage-learning term for the TD-error.

        ``td_al  = td - a * (V(s)  - Q(s, a))``
        ``td_pal = max(td_al, td - a * (V(s') - Q(s', a)))``

        with ``V`` and ``Q`` from the target network.  Returns
        ``td_pal - td``, which does not depend on the policy parameters.
        The persistent term is skipped for terminal transitions.
        """
        actions = batch.action.astype(jnp.int32)[:, None]
        q_s = jax.vmap(target_params)(batch.obs)
        q_next = jax.vmap(target_params)(batch.next_obs)
        gap_s = jnp.max(q_s, axis=-1) - jnp.take_along_axis(q_s, actions, axis=-1)[:, 0]
        gap_next = jnp.max(q_next, axis=-1) - jnp.take_along_axis(q_next, actions, axis=-1)[:, 0]
        al = -pal_alpha * gap_s
        persistent = jnp.maximum(al, -pal_alpha * gap_next)
        return jax.lax.stop_gradient(jnp.where(batch.done, al, persistent))

    @staticmethod
    @partial(jax.jit, static_argnames=("config",))
    def learn(
        state: DQNState,
        batch: Transition,
        weights: chex.Array,
        *,
        config: DQNConfig,
    ) -> tuple[DQNState, LearnOutput]:
        """One gradient step on a batch of transitions (pure function).

        Args:
            state: Current DQN state.
            batch: Batched transitions, each field has shape ``(B, ...)``.
            weights: Importance-sampling weights, shape ``(B,)``.
            config: DQN hyperparameters (static).

        Returns:
            (new_state, output) tuple.  ``target_params`` is left untouched.
        """
        targets = DQN.double_q_targets(
            state.params,
            state.target_params,
            batch,
            gamma=config.gamma,
            double_q=config.double_q,
        )
        correction = None
        if config.pal_alpha > 0:
            correction = DQN.pal_correction(
                state.target_params, batch, pal_alpha=config.pal_alpha,
            )

        objective = TDObjective(
            batch=batch,
            targets=targets,
            weights=weights,
            td_clip=config.td_clip,
            correction=correction,
        )
        new_params, new_opt_state, loss, aux = make_optimizer(config).step(
            objective, state.params, state.opt_state,
        )

        new_state = state._replace(
            params=new_params,
            opt_state=new_opt_state,
            step=state.step + 1,
        )
        return new_state, LearnOutput(
            loss=loss,
            td_errors=aux.td_errors,
            q_mean=jnp.mean(aux.q_taken),
        )

    @staticmethod
    @partial(jax.jit, static_argnames=("config",))
    def evaluate_batch(
        state: DQNState,
        batch: Transition,
        *,
        config: DQNConfig,
    ) -> tuple[chex.Array, chex.Array]:
        """Average ``V(s) = max_a Q(s, a)`` and average ``|td|`` over *batch*.

        Read-only: no parameter or priority changes.
        """
        targets = DQN.double_q_targets(
            state.params,
            state.target_params,
            batch,
            gamma=config.gamma,
            double_q=config.double_q,
        )
        q_all = jax.vmap(state.params)(batch.obs)
        q_taken = q_all[jnp.arange(q_all.shape[0]), batch.action.astype(jnp.int32)]
        td = clip_td(targets - q_taken, config.td_clip)
        return jnp.mean(jnp.max(q_all, axis=-1)), jnp.mean(jnp.abs(td))

    @staticmethod
    def maybe_sync_target(
        state: DQNState,
        step: int,
        *,
        config: DQNConfig,
    ) -> tuple[DQNState, bool]:
        """Hard-copy policy parameters into the target network.

        Happens when ``step % tau == 0`` and ``step >= learn_start``.
        JAX arrays are immutable, so sharing the policy pytree is an exact,
        bit-identical copy that later policy updates cannot alter.
        """
        if step % config.tau == 0 and step >= config.learn_start:
            return state._replace(target_params=state.params), True
        return state, False

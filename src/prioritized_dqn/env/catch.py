"""Pure-JAX Catch environment.

A ball falls one row per step from a random column at the top of a
``rows x columns`` board; a three-cell-wide paddle on the bottom row
moves left, stays, or moves right.  The episode ends when the ball
reaches the bottom row.
"""

from __future__ import annotations

from typing import Any

import equinox as eqx
import jax
import jax.numpy as jnp

from prioritized_dqn.env.base import Environment, EnvParams, EnvState
from prioritized_dqn.env.spaces import Box, Discrete


class CatchState(EnvState):
    ball_row: jax.Array
    ball_col: jax.Array
    paddle_col: jax.Array


class CatchParams(EnvParams):
    rows: int = eqx.field(static=True, default=10)
    columns: int = eqx.field(static=True, default=5)


# Paddle deltas: left, stay, right
_DX = jnp.array([-1, 0, 1], dtype=jnp.int32)


class Catch(Environment):
    """Catch the falling ball.

    Observation: ``(rows, columns, 1)`` float32 board, ``1.0`` on the ball
    and paddle cells.
    Actions: ``0``=left, ``1``=stay, ``2``=right.
    Reward: ``+1`` when the ball lands on the paddle, ``-1`` when it is
    missed, ``0`` otherwise.
    """

    def default_params(self) -> CatchParams:
        return CatchParams()

    def reset(
        self,
        key: jax.Array,
        params: CatchParams,
    ) -> tuple[jax.Array, CatchState]:
        ball_col = jax.random.randint(key, (), 0, params.columns)
        state = CatchState(
            ball_row=jnp.int32(0),
            ball_col=ball_col.astype(jnp.int32),
            paddle_col=jnp.int32(params.columns // 2),
            time=jnp.int32(0),
        )
        return self._get_obs(state, params), state

    def step(
        self,
        key: jax.Array,
        state: CatchState,
        action: jax.Array,
        params: CatchParams,
    ) -> tuple[jax.Array, CatchState, jax.Array, jax.Array, dict[str, Any]]:
        paddle_col = jnp.clip(state.paddle_col + _DX[action], 1, params.columns - 2)
        ball_row = state.ball_row + 1
        new_state = CatchState(
            ball_row=ball_row,
            ball_col=state.ball_col,
            paddle_col=paddle_col,
            time=state.time + 1,
        )

        done = ball_row >= params.rows - 1
        caught = jnp.abs(state.ball_col - paddle_col) <= 1
        reward = jnp.where(
            done,
            jnp.where(caught, jnp.float32(1.0), jnp.float32(-1.0)),
            jnp.float32(0.0),
        )
        return self._get_obs(new_state, params), new_state, reward, done, {"caught": done & caught}

    @property
    def noop_action(self) -> int:
        return 1

    def observation_space(self, params: CatchParams) -> Box:
        return Box(low=0.0, high=1.0, shape=(params.rows, params.columns, 1))

    def action_space(self, params: CatchParams) -> Discrete:
        return Discrete(n=3)

    @staticmethod
    def _get_obs(state: CatchState, params: CatchParams) -> jax.Array:
        board = jnp.zeros((params.rows, params.columns), dtype=jnp.float32)
        board = board.at[state.ball_row, state.ball_col].set(1.0)
        cols = state.paddle_col + jnp.arange(-1, 2)
        board = board.at[params.rows - 1, cols].set(1.0)
        return board[..., None]

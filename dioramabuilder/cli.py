"""Click CLI commands for DioramaBuilder."""

import logging

import click

from .builder import DioramaBuilder
from .camera import CameraMode
from .constants import DEFAULT_SEED, NIGHT_MODE
from .glb import export_glb

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """DioramaBuilder CLI for generating and animating the city diorama."""
    pass


@cli.command()
@click.option('--output', '-o', default='diorama.glb', help='Output GLB file path')
@click.option('--seed', default=DEFAULT_SEED, show_default=True, help='Random seed')
@click.option('--night/--day', default=NIGHT_MODE, help='Practical lights and lit windows')
def build(output: str, seed: int, night: bool):
    """Generate the diorama and export it as GLB."""
    try:
        diorama = DioramaBuilder(seed=seed, night=night).build()
        path = export_glb(diorama.root, output)
        click.echo(f"Wrote {path}")
    except Exception as e:
        logger.error(f"Error building diorama: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.option('--seconds', default=30.0, show_default=True, help='Simulated time')
@click.option('--dt', default=1 / 60, show_default=True, help='Fixed step in seconds')
@click.option('--seed', default=DEFAULT_SEED, show_default=True, help='Random seed')
@click.option('--camera', 'camera_mode', default=CameraMode.RED.value, show_default=True,
              type=click.Choice([m.value for m in CameraMode], case_sensitive=False),
              help='Camera mode to resolve after the last frame')
@click.option('--manual-heli', is_flag=True, help='Switch the helicopter to manual flight')
def simulate(seconds: float, dt: float, seed: int, camera_mode: str, manual_heli: bool):
    """Run the animation at a fixed step and report agent state."""
    try:
        diorama = DioramaBuilder(seed=seed).build()
        if manual_heli:
            diorama.helicopter.set_manual()
        frames = diorama.scheduler.run(seconds, step=dt)

        click.echo(f"\n{'='*50}")
        click.echo(f"Simulated {frames} frames ({diorama.scheduler.elapsed:.2f}s), "
                   f"{diorama.scheduler.faults} agent faults")
        click.echo(f"  {diorama.red_train!r}")
        click.echo(f"  {diorama.blue_train!r}")
        for elevator in diorama.needle.elevators:
            click.echo(f"  Elevator {int(elevator.angle)}: {elevator.mode.value} y={elevator.y:.2f}")
        heli = diorama.helicopter
        x, y, z = heli.position
        click.echo(f"  Helicopter: {heli.mode.value} at ({x:.1f}, {y:.1f}, {z:.1f}), "
                   f"rotor={heli.rotor_speed:.1f}")

        view = diorama.camera.resolve(camera_mode.upper())
        if view is None:
            click.echo(f"Camera {camera_mode.upper()}: orbit controller")
        else:
            click.echo(f"Camera {camera_mode.upper()}: eye={view.position.round(2).tolist()} "
                       f"target={view.look_at.round(2).tolist()} fov={view.fov}")
        click.echo(f"{'='*50}")
    except Exception as e:
        logger.error(f"Error simulating diorama: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.option('--seed', default=DEFAULT_SEED, show_default=True, help='Random seed')
def stats(seed: int):
    """Build the diorama and print scene-graph counts."""
    try:
        diorama = DioramaBuilder(seed=seed).build()
        for key, value in diorama.summary().items():
            click.echo(f"{key}: {value}")
    except Exception as e:
        logger.error(f"Error summarizing diorama: {e}")
        raise click.ClickException(str(e))


if __name__ == '__main__':
    cli()

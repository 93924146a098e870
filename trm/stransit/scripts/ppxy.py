#!/usr/bin/env python

from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import typer

from trm import stransit

app = typer.Typer(add_completion=False)

@app.command()
def ppxy(
        model: Path = typer.Argument(..., exists=True, help='file with the model'),
        time1: float = typer.Option(-0.1, help='start time'),
        time2: float = typer.Option(0.1, help='end time'),
        ntime: int = typer.Option(500, min=2, help='number of times'),
        save: Optional[Path] = typer.Option(
            None, help='file to save the plot to rather than displaying it'
        ),
):
    """Plots the path of the planet across the face of the star on the
    plane of the sky, together with the outlines of the spots, projected as
    seen by the observer.
    """

    mod = stransit.model.Model(str(model))
    ts = np.linspace(time1, time2, ntime)
    xs, ys, front = mod.positions(ts)
    print(f'{front.sum()} of {ntime} times have the planet in front of the star')

    theta = np.linspace(0,2.*np.pi,200)
    xc, yc = np.cos(theta), np.sin(theta)

    fig,ax = plt.subplots()
    ax.set_aspect('equal')

    # star, and band over which the planet centre causes a dip
    p = mod['p'][0]
    ax.plot(xc,yc,'k',label='star')
    ax.plot((1+p)*xc,(1+p)*yc,'k--',label='1+p')

    # spots: the outline of a circle of radius a on the unit sphere
    for n, (x, y, a, c) in enumerate(zip(*mod.spots())):
        d = np.hypot(x, y)
        phi = np.arctan2(y, x)
        dc = d*np.sqrt(max(0., 1.-a**2))
        b = a*np.sqrt(max(0., 1.-d**2))
        xe = dc + b*xc
        ye = a*yc
        ax.plot(
            xe*np.cos(phi)-ye*np.sin(phi), xe*np.sin(phi)+ye*np.cos(phi),
            'r' if c < 0 else 'g', label=f'spot {n+1}'
        )

    ax.plot(xs[front],ys[front],'b',label='planet')
    ax.legend()
    ax.set_xlabel('X [stellar radii]')
    ax.set_ylabel('Y [stellar radii]')

    if save is not None:
        fig.savefig(save)
        print('Saved plot to',save)
    else:
        plt.show()

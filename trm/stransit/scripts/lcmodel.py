#!/usr/bin/env python

import time
from pathlib import Path
from typing import Optional

import numpy as np
import matplotlib.pyplot as plt
import typer

from trm import stransit

app = typer.Typer(add_completion=False)

@app.command()
def lcmodel(
        model: Path = typer.Argument(..., exists=True, help='file with the model'),
        data: Optional[Path] = typer.Option(
            None, exists=True, help='light curve data to use as a template'
        ),
        norm: bool = typer.Option(True, help='normalise to minimise chi**2'),
        time1: float = typer.Option(-0.1, help='first time [no data]'),
        time2: float = typer.Option(0.1, help='last time [no data]'),
        ntime: int = typer.Option(1000, min=2, help='number of times [no data]'),
        texp: float = typer.Option(0., min=0., help='exposure length [no data]'),
        ndiv: int = typer.Option(1, min=1, help='sub-divisions per exposure [no data]'),
        plot: bool = typer.Option(True, help='plot the light curve'),
        output: Optional[Path] = typer.Option(None, help='file to write the model to'),
):
    """Computes and plots the light curve of a planet transiting a spotted,
    limb-darkened star. It either does so given an already existing data
    file as a template or on a regularly-spaced set of times.
    """

    mod = stransit.model.Model(str(model))

    if data is not None:

        # Load data case
        ts,tes,fs,fes,ws,nds = stransit.model.load_data(data)
        t0 = time.time()
        fit = mod.fit(ts,tes,nds)
        print(f'Computed {len(ts)} points in {time.time()-t0:.3f} seconds')

        if norm:
            # normalise for minimum chi-squared
            sfac = stransit.model.calc_sfac(fit, fs, fes, ws)
            fit *= sfac
            print('Scaled by',sfac)

        wgts = ws/fes**2
        chisq = (wgts*(fs-fit)**2).sum()
        print('Weighted chisq =',chisq)

    else:

        # no data case
        ts = np.linspace(time1, time2, ntime)
        tes = texp*np.ones_like(ts)
        nds = ndiv*np.ones_like(ts,dtype=int)
        t0 = time.time()
        fit = mod.fit(ts,tes,nds)
        print(f'Computed {len(ts)} points in {time.time()-t0:.3f} seconds')
        fs = None

    if output is not None:
        fes = 0.001*np.ones_like(ts) if data is None else fes
        ws = np.ones_like(ts) if data is None else ws
        stransit.model.write_data(
            output, ts, tes, fit, fes, ws, nds,
            comment=f'Model light curve computed from {model}'
        )
        print('Written model to',output)

    if plot:
        if fs is not None:
            plt.plot(ts,fs,'.g')
        plt.plot(ts,fit,'r' if fs is not None else 'b')
        plt.xlabel('Time [days]')
        plt.ylabel('Flux')
        plt.show()

"""
Plots written next to the run and sweep reports.

`BasePlotter` owns the figure set-up and saving; `Plotter` adds the three figures the CLI produces:

- the wait time histogram of a single run (from the job history),
- the pending queue length over simulated time of a single run,
- one report metric against cluster size for a sweep, one line per policy.
"""
from pathlib import Path
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402


class BasePlotter:
    """
    Axis labels and title shared by every figure.

    Attributes
    ----------
    xlabel : str
    ylabel : str
    title : str
    """

    def __init__(self, xlabel, ylabel, title):
        self.xlabel = xlabel
        self.ylabel = ylabel
        self.title = title

    def setup_plot(self, figsize=(10, 5)):
        """Open a new figure with labels, title and grid applied."""
        plt.figure(figsize=figsize)
        plt.xlabel(self.xlabel)
        plt.ylabel(self.ylabel)
        plt.title(self.title)
        plt.grid(True)

    def save_and_close_plot(self, save_path):
        plt.tight_layout()
        plt.savefig(save_path)
        plt.close()


class Plotter(BasePlotter):
    """
    Writes one figure to `save_path` per call. The image type follows the file extension.
    """

    def __init__(self, xlabel='', ylabel='', title='', save_path: Path | str = 'out.png'):
        super().__init__(xlabel, ylabel, title)
        self.save_path = save_path

    def plot_history(self, x, y):
        """Step plot of a value that holds until the next sample, e.g. the queue length."""
        self.setup_plot()
        plt.step(x, y, where='post')
        self.save_and_close_plot(self.save_path)

    def plot_histogram(self, data, bins=50):
        """
        Histogram of `data`, e.g. the wait_time column of the job history.

        Parameters
        ----------
        data : array-like
        bins : int, optional
            Number of bins, capped at the number of distinct values (default is 50).
        """
        self.setup_plot()
        distinct = len(set(data))
        plt.hist(data, bins=max(1, min(bins, distinct)))
        self.save_and_close_plot(self.save_path)

    def plot_sweep(self, df: pd.DataFrame, metric: str, log_x=True):
        """
        Plot `metric` against total_nodes with one line per scheduler_name.

        Parameters
        ----------
        df : pd.DataFrame
            Sweep results, as returned by stats.reports_to_dataframe.
        metric : str
            Column of df to plot. Rows where it is -1 (nothing ran) are left out.
        log_x : bool, optional
            Cluster sizes are usually powers of two, so the x axis is log2 by default.
        """
        self.setup_plot()
        for name, group in df[df[metric] != -1].groupby("scheduler_name", sort=True):
            group = group.sort_values("total_nodes")
            plt.plot(group["total_nodes"], group[metric], marker='o', label=name)
        if log_x:
            plt.xscale('log', base=2)
        if plt.gca().has_data():
            plt.legend()
        self.save_and_close_plot(self.save_path)

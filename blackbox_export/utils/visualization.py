"""
Visualization utilities for exported GPS tracks.

Renders the track of a log as a plan view (longitude/latitude) next to an
altitude profile.
"""

import pandas as pd
import matplotlib.pyplot as plt
import seaborn as sns
from typing import Optional, Dict, Any, List, Tuple
import logging


logger = logging.getLogger(__name__)

TrackPoint = Tuple[Optional[int], int, int, int]


def track_to_dataframe(points: List[TrackPoint]) -> pd.DataFrame:
    """
    Convert GPX track points into a DataFrame.

    Args:
        points: (time_us, lat * 10^7, lon * 10^7, altitude_m) tuples

    Returns:
        DataFrame with time_s, latitude, longitude and altitude columns
    """
    df = pd.DataFrame(points, columns=['time_us', 'lat', 'lon', 'altitude'])
    df['time_s'] = pd.to_numeric(df['time_us'], errors='coerce') / 1e6
    df['latitude'] = df['lat'] / 1e7
    df['longitude'] = df['lon'] / 1e7
    return df[['time_s', 'latitude', 'longitude', 'altitude']]


class TrackVisualizer:
    """Creates plots of exported GPS tracks."""

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize track visualizer.

        Args:
            config: Configuration dictionary with visualization parameters
        """
        self.config = config or {}

        plt.style.use('default')
        sns.set_palette("husl")

        self.default_figsize = (14, 6)
        self.default_dpi = self.config.get('dpi', 150)

    def plot_track(self, points: List[TrackPoint], output_path: str) -> Optional[str]:
        """
        Plot a GPS track.

        Args:
            points: Track points as collected by the GPX writer
            output_path: Path to save the plot

        Returns:
            Path to saved plot, or None if the track has no points
        """
        if not points:
            logger.info("No GPS track points, skipping track plot")
            return None

        logger.info(f"Creating track plot with {len(points)} points")
        track = track_to_dataframe(points)

        fig, (ax_track, ax_alt) = plt.subplots(1, 2, figsize=self.default_figsize)

        self._plot_plan_view(ax_track, track)
        self._plot_altitude(ax_alt, track)

        fig.suptitle('GPS Track', fontsize=14, fontweight='bold')

        plt.savefig(output_path, dpi=self.default_dpi, bbox_inches='tight')
        plt.close(fig)

        logger.info(f"Saved track plot to {output_path}")
        return output_path

    def _plot_plan_view(self, ax, track: pd.DataFrame):
        """Plot latitude against longitude with start and end markers."""
        ax.plot(track['longitude'], track['latitude'], 'b-', alpha=0.7, linewidth=1, label='Track')

        ax.plot(track['longitude'].iloc[0], track['latitude'].iloc[0],
                'go', markersize=8, label='Start')
        ax.plot(track['longitude'].iloc[-1], track['latitude'].iloc[-1],
                'ro', markersize=8, label='End')

        ax.set_xlabel('Longitude (deg)')
        ax.set_ylabel('Latitude (deg)')
        ax.set_title('Flight Track')
        ax.legend()
        ax.grid(True, alpha=0.3)

    def _plot_altitude(self, ax, track: pd.DataFrame):
        if track['time_s'].notna().any():
            ax.plot(track['time_s'], track['altitude'], 'g-', linewidth=1)
            ax.set_xlabel('Time (s)')
        else:
            ax.plot(track.index, track['altitude'], 'g-', linewidth=1)
            ax.set_xlabel('Fix')

        ax.set_ylabel('Altitude (m)')
        ax.set_title('Altitude Profile')
        ax.grid(True, alpha=0.3)

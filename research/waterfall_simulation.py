import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from tranche_model.src.config.loader import load_config
from tranche_model.src.config.schema import Config, ScenarioSettings
from tranche_model.src.constants import PRECISION, SENIOR_TARGET_BACKING, SENIOR_TRIGGER_BACKING
from tranche_model.src.libs.apy_selector import get_apy_in_bps
from tranche_model.src.libs.fixed_point import from_fixed, to_fixed
from tranche_model.src.protocol import build_protocol
from tranche_model.src.utils.clock import ManualClock
from tranche_model.src.utils.logging import get_logger

log = get_logger("tranche_model.simulation")

# LP price never falls below this in a simulated path
MIN_LP_PRICE = 1e-6

ZONE_COLORS = {"SPILLOVER": "green", "HEALTHY": "steelblue", "BACKSTOP": "red"}


@dataclass
class SimulationParams:
    months: int = 12
    initial_lp_price: float = 1.0
    monthly_drift: float = 0.0
    volatility: float = 0.0
    shock_month: Optional[int] = None
    shock_size: float = 0.0
    random_seed: Optional[int] = None
    experiment_name: str = "default"

    @classmethod
    def from_scenario(cls, scenario: ScenarioSettings) -> 'SimulationParams':
        return cls(
            months=scenario.months,
            initial_lp_price=scenario.initial_lp_price,
            monthly_drift=scenario.monthly_drift,
            volatility=scenario.volatility,
            shock_month=scenario.shock_month,
            shock_size=scenario.shock_size,
            random_seed=scenario.random_seed,
            experiment_name=scenario.name,
        )


def generate_price_path(params: SimulationParams) -> np.ndarray:
    """
    Monthly LP price path with months + 1 points, starting at the initial price.

    Each month the price moves by a normally distributed return
    (mean monthly_drift, std volatility); an optional one-off shock is
    applied on top at shock_month.
    """
    rng = np.random.default_rng(params.random_seed)
    returns = rng.normal(params.monthly_drift, params.volatility, params.months)
    if params.shock_month is not None and 0 < params.shock_month <= params.months:
        returns[params.shock_month - 1] += params.shock_size
    growth = np.concatenate(([1.0], np.cumprod(1.0 + returns)))
    return np.maximum(params.initial_lp_price * growth, MIN_LP_PRICE)


class WaterfallSimulation:
    def __init__(self, params: SimulationParams, config: Optional[Config] = None):
        self.params = params
        config = config or load_config()
        # Seed deposits are admitted at the first price of the path
        seed = config.seed.model_copy(update={"lp_price": params.initial_lp_price})
        self.config = config.model_copy(update={"seed": seed})
        self.clock = ManualClock()
        self.protocol = None
        self.prices = generate_price_path(params)
        self.snapshots: List[Dict] = []

    def _row(self, month: int, lp_price: float, report=None) -> Dict:
        senior = self.protocol.senior
        junior = self.protocol.junior
        reserve = self.protocol.reserve
        row = {
            "month": month,
            "timestamp": self.clock.now(),
            "lp_price": lp_price,
            "epoch": senior.state.epoch,
            "zone": senior.current_zone().name,
            "apy_tier": 0,
            "apy_bps": 0,
            "backing_ratio": from_fixed(senior.backing_ratio()),
            "senior_value": from_fixed(senior.value),
            "senior_supply": from_fixed(senior.total_supply()),
            "junior_value": from_fixed(junior.value),
            "reserve_value": from_fixed(reserve.value),
            "rebase_index": from_fixed(senior.state.rebase_index),
            "management_fee": 0.0,
            "spillover_junior": 0.0,
            "spillover_reserve": 0.0,
            "backstop_reserve": 0.0,
            "backstop_junior": 0.0,
            "fully_restored": True,
            "reserve_depleted": reserve.is_depleted(),
        }
        if report is not None:
            row.update(
                zone=report.zone.name,
                apy_tier=report.apy_tier,
                apy_bps=get_apy_in_bps(report.apy_tier),
                management_fee=from_fixed(report.management_fee),
                backstop_reserve=from_fixed(report.provided_by_reserve),
                backstop_junior=from_fixed(report.provided_by_junior),
                fully_restored=report.fully_restored,
            )
            if report.spillover is not None:
                row.update(
                    spillover_junior=from_fixed(report.spillover.to_junior),
                    spillover_reserve=from_fixed(report.spillover.to_reserve),
                )
        return row

    def run(self) -> pd.DataFrame:
        """Seed the protocol, then rebase once a month at the simulated LP price"""
        self.protocol = build_protocol(self.config, clock=self.clock)
        operator = self.protocol.operator
        senior = self.protocol.senior
        self.snapshots = [self._row(0, float(self.prices[0]))]

        for month in range(1, self.params.months + 1):
            self.clock.advance(senior.min_rebase_interval)
            price = float(self.prices[month])
            lp_price = to_fixed(round(price, 12))

            for ledger in (self.protocol.junior, self.protocol.reserve):
                if ledger.state.lp_balance > 0:
                    ledger.mark_to_market(operator, lp_price)
            report = senior.rebase(operator, lp_price)
            self.snapshots.append(self._row(month, price, report))

        log.info(f"{self.params.experiment_name}: simulated {self.params.months} months")
        return pd.DataFrame(self.snapshots)


def summarize(frame: pd.DataFrame) -> Dict:
    """Zone and APY distribution, backing statistics and transfer totals"""
    rebases = frame[frame["month"] > 0]
    first, last = frame.iloc[0], frame.iloc[-1]
    return {
        "months": len(rebases),
        "zone_counts": rebases["zone"].value_counts().to_dict(),
        "apy_distribution": rebases["apy_bps"].value_counts().sort_index().to_dict(),
        "backing_mean": float(rebases["backing_ratio"].mean()) if len(rebases) else float(first["backing_ratio"]),
        "backing_min": float(frame["backing_ratio"].min()),
        "backing_max": float(frame["backing_ratio"].max()),
        "total_spillover_junior": float(rebases["spillover_junior"].sum()),
        "total_spillover_reserve": float(rebases["spillover_reserve"].sum()),
        "total_backstop_reserve": float(rebases["backstop_reserve"].sum()),
        "total_backstop_junior": float(rebases["backstop_junior"].sum()),
        "total_management_fee": float(rebases["management_fee"].sum()),
        "unrestored_backstops": int((~rebases["fully_restored"].astype(bool)).sum()),
        "senior_balance_growth": float(last["rebase_index"] / first["rebase_index"] - 1.0),
        "final_senior_value": float(last["senior_value"]),
        "final_junior_value": float(last["junior_value"]),
        "final_reserve_value": float(last["reserve_value"]),
    }


def plot_results(frame: pd.DataFrame, output_dir: Path, experiment_name: str = "default") -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    fig, (ax1, ax2, ax3) = plt.subplots(3, 1, figsize=(12, 10), sharex=True)

    ax1.plot(frame["month"], frame["lp_price"], label='LP Price')
    ax1.set_ylabel('LP Price')
    ax1.set_title(f'{experiment_name}: LP Price')
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.plot(frame["month"], frame["senior_value"], label='Senior')
    ax2.plot(frame["month"], frame["junior_value"], label='Junior')
    ax2.plot(frame["month"], frame["reserve_value"], label='Reserve')
    ax2.plot(frame["month"], frame["senior_supply"], label='Senior Supply', linestyle=':')
    ax2.set_ylabel('Value')
    ax2.set_title('Tranche Values')
    ax2.legend(loc='upper left')
    ax2.grid(True, alpha=0.3)

    ax3.plot(frame["month"], frame["backing_ratio"] * 100, color='black', label='Senior Backing')
    ax3.scatter(
        frame["month"],
        frame["backing_ratio"] * 100,
        c=[ZONE_COLORS[z] for z in frame["zone"]],
        zorder=3,
    )
    ax3.axhline(y=SENIOR_TARGET_BACKING / PRECISION * 100, color='g', linestyle='--', alpha=0.3)
    ax3.axhline(y=SENIOR_TRIGGER_BACKING / PRECISION * 100, color='r', linestyle='--', alpha=0.3)
    ax3.set_ylabel('Backing (%)')
    ax3.set_xlabel('Month')
    ax3.set_title('Senior Backing Ratio')
    ax3.legend()
    ax3.grid(True, alpha=0.3)

    plt.tight_layout()
    path = output_dir / f"{experiment_name}.png"
    plt.savefig(path)
    plt.close(fig)
    return path


def export_snapshots(frame: pd.DataFrame, output_dir: Path, experiment_name: str = "default") -> Path:
    """Write the per-epoch snapshot frame as CSV"""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{experiment_name}_snapshots.csv"
    frame.to_csv(path, index=False)
    return path


def compare_scenarios(
    config: Config,
    scenarios: Optional[List[ScenarioSettings]] = None,
    output_dir: Optional[Path] = None,
) -> pd.DataFrame:
    """Run every scenario and return one summary row per scenario"""
    scenarios = scenarios if scenarios is not None else config.scenarios
    rows = []
    frames = {}
    for scenario in scenarios:
        params = SimulationParams.from_scenario(scenario)
        frame = WaterfallSimulation(params, config).run()
        frames[scenario.name] = frame
        summary = summarize(frame)
        rows.append({
            "scenario": scenario.name,
            "months": summary["months"],
            "spillover_months": summary["zone_counts"].get("SPILLOVER", 0),
            "healthy_months": summary["zone_counts"].get("HEALTHY", 0),
            "backstop_months": summary["zone_counts"].get("BACKSTOP", 0),
            "backing_mean": summary["backing_mean"],
            "backing_min": summary["backing_min"],
            "senior_balance_growth": summary["senior_balance_growth"],
            "unrestored_backstops": summary["unrestored_backstops"],
        })
        if output_dir is not None:
            export_snapshots(frame, output_dir, scenario.name)
            plot_results(frame, output_dir, scenario.name)

    if output_dir is not None and frames:
        fig, ax = plt.subplots(figsize=(12, 6))
        for name, frame in frames.items():
            ax.plot(frame["month"], frame["backing_ratio"] * 100, label=name)
        ax.axhline(y=SENIOR_TARGET_BACKING / PRECISION * 100, color='g', linestyle='--', alpha=0.3)
        ax.axhline(y=SENIOR_TRIGGER_BACKING / PRECISION * 100, color='r', linestyle='--', alpha=0.3)
        ax.set_ylabel('Backing (%)')
        ax.set_xlabel('Month')
        ax.set_title('Senior Backing Ratio by Scenario')
        ax.legend(bbox_to_anchor=(1.05, 1), loc='upper left')
        ax.grid(True, alpha=0.3)
        plt.tight_layout()
        plt.savefig(Path(output_dir) / "scenario_comparison.png", bbox_inches='tight')
        plt.close(fig)

    comparison = pd.DataFrame(rows)
    if output_dir is not None:
        comparison.to_csv(Path(output_dir) / "scenario_comparison.csv", index=False)
    return comparison


def main(argv=None):
    parser = argparse.ArgumentParser(description="Simulate the Senior/Junior/Reserve waterfall")
    parser.add_argument("--config", help="YAML config (defaults.yaml when omitted)")
    parser.add_argument("--scenario", help="Run a single named scenario")
    parser.add_argument("--output-dir", default="research/results/waterfall")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args(argv)

    overrides = {"log_level": args.log_level} if args.log_level else None
    config = load_config(args.config, overrides)
    scenarios = [config.scenario(args.scenario)] if args.scenario else None
    comparison = compare_scenarios(config, scenarios, Path(args.output_dir))
    print(comparison.to_string(index=False))


if __name__ == "__main__":
    main()

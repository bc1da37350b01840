#!filepath: streamlearn/cli.py
from pathlib import Path
from typing import Optional

import pandas as pd
import typer
from rich import print
from rich.table import Table

from streamlearn import init_logging, logs
from streamlearn.config import AppConfig
from streamlearn.data.row_meta import RowMeta, rows_from_frame
from streamlearn.models.registry import available_schemes
from streamlearn.scoring.row_generator import ScoringRowGenerator
from streamlearn.training.pipeline import StreamingTrainingPipeline
from streamlearn.utils.errors import ConfigurationError, StreamLearnError

app = typer.Typer(help="StreamLearn streaming training / scoring CLI")


def read_frame(path: Path) -> pd.DataFrame:
    """
    CSV or parquet (pyarrow) input.
    """
    if path.suffix.lower() in (".parquet", ".pq"):
        return pd.read_parquet(path, engine="pyarrow")
    return pd.read_csv(path)


def write_rows(rows, output: Optional[Path]) -> pd.DataFrame:
    df = pd.DataFrame(rows)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(output, index=False)
        logs.info(f"[cli] wrote {len(df)} rows -> {output}")
    return df


def _load_config(config: Path) -> AppConfig:
    cfg = AppConfig.load(str(config))
    init_logging(cfg.log)
    return cfg


@app.command()
def version():
    from streamlearn import __version__

    print(f"v{__version__}")


@app.command()
def schemes():
    """
    List the available learning schemes.
    """
    for name in available_schemes():
        print(name)


@app.command()
@logs.catch(msg="training run failed")
def train(
    config: Path = typer.Option(..., "--config", "-c", help="YAML config file"),
    data: Path = typer.Option(..., "--data", "-d", help="training rows (csv / parquet)"),
    test: Optional[Path] = typer.Option(None, "--test", "-t", help="separate test rows"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="output rows (csv)"),
):
    """
    Stream training rows through the configured training run.
    """
    cfg = _load_config(config)
    if cfg.training is None:
        raise ConfigurationError(f"No 'training' section in {config}")

    print(f"[green]Training {cfg.training.scheme.name} on {data}[/green]")

    train_df = read_frame(data)
    test_df = read_frame(test) if test is not None else None

    try:
        pipeline = StreamingTrainingPipeline(cfg.training)
        result = pipeline.run_frame(train_df, test_df)
    except StreamLearnError as ex:
        print(f"[red]{type(ex).__name__}: {ex}[/red]")
        raise typer.Exit(code=1)

    df = write_rows(result.to_dict("records"), output)
    _summary(df)


@app.command()
@logs.catch(msg="scoring run failed")
def score(
    config: Path = typer.Option(..., "--config", "-c", help="YAML config file"),
    data: Path = typer.Option(..., "--data", "-d", help="rows to score (csv / parquet)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="scored rows (csv)"),
):
    """
    Score rows with a saved model.
    """
    cfg = _load_config(config)
    if cfg.scoring is None:
        raise ConfigurationError(f"No 'scoring' section in {config}")

    print(f"[blue]Scoring {data} with {cfg.scoring.model_path}[/blue]")

    df = read_frame(data)
    try:
        generator = ScoringRowGenerator.from_config(cfg.scoring, RowMeta.from_frame(df))
        rows = list(generator.process_stream(rows_from_frame(df)))
    except StreamLearnError as ex:
        print(f"[red]{type(ex).__name__}: {ex}[/red]")
        raise typer.Exit(code=1)

    out = write_rows(rows, output)
    _summary(out)


def _summary(df: pd.DataFrame, limit: int = 10) -> None:
    if df.empty:
        print("[yellow]no output rows[/yellow]")
        return

    table = Table(show_lines=False)
    cols = [c for c in df.columns if c not in ("model", "confusion_matrix")][:8]
    for c in cols:
        table.add_column(str(c))
    for _, row in df.head(limit).iterrows():
        table.add_row(*[str(row[c]) for c in cols])
    print(table)


if __name__ == "__main__":
    app()

# python -m streamlearn.cli train -c config.yaml -d train.csv -o out.csv

"""CSV export of generated samples."""

import csv
import io

from models.generated_sample import GeneratedSample
from models.sampling_configuration import SamplingConfiguration

CSV_HEADERS = ["Period", "Sample #", "Date", "Weekend", "Holiday", "Status"]


def samples_to_csv(config: SamplingConfiguration, samples: list[GeneratedSample]) -> str:
    """
    Render a configuration's samples as CSV, ordered by sample index.

    Args:
        config: Configuration the samples belong to
        samples: Samples to export (samples of other configurations are skipped)

    Returns:
        CSV text including a header row
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    own = sorted(
        (s for s in samples if s.sampling_config_id == config.id),
        key=lambda s: s.sample_index,
    )
    for sample in own:
        writer.writerow(
            [
                sample.period_name,
                sample.sample_index,
                sample.sample_date.isoformat(),
                "yes" if sample.is_weekend else "no",
                "yes" if sample.is_holiday else "no",
                sample.status.value,
            ]
        )
    return buffer.getvalue()

from openpyxl import load_workbook

from processing.pipeline import build_report_frames
from reporting import ReportExporter, documentation_frame, documentation_lines


def test_workbook_layout(tmp_path, mixed_records):
    frames = build_report_frames(mixed_records)
    path = ReportExporter(str(tmp_path / "out" / "report.xlsx")).export(documentation_frame(), frames)

    wb = load_workbook(path)
    assert wb.sheetnames == [
        "Documentation",
        "Renter households by PUMA",
        "Renter households (total)",
        "Homeowner households by PUMA",
        "Homeowner households (total)",
    ]

    assert wb["Renter households by PUMA"].freeze_panes == "D2"
    assert wb["Homeowner households by PUMA"].freeze_panes == "D2"
    assert wb["Renter households (total)"].freeze_panes == "C2"
    assert wb["Homeowner households (total)"].freeze_panes == "C2"

    doc = wb["Documentation"]
    assert doc.column_dimensions["A"].width == 85
    assert doc["A1"].value == "information"
    assert doc["A2"].alignment.wrap_text


def test_table_values_written(tmp_path, scenario_records):
    frames = build_report_frames(scenario_records)
    path = ReportExporter(str(tmp_path / "report.xlsx")).export(documentation_frame(), frames)

    ws = load_workbook(path)["Renter households (total)"]
    header = [cell.value for cell in ws[1]]
    values = dict(zip(header, [cell.value for cell in ws[2]]))

    assert header[:3] == ["tenure", "income", "vehicles_0"]
    assert values["tenure"] == "renter"
    assert values["income"] == "AMI_60"
    assert values["vehicles_0"] == 5
    assert values["total"] == 10
    assert values["vehicles_2_prop"] == 0.5
    assert ws.max_row == 2


def test_documentation_text():
    lines = documentation_lines(
        {"area_name": "Philadelphia", "contact": "Questions: data@example.org"},
        {"year": 2019, "survey": "acs5"},
    )
    text = "\n".join(lines)
    assert "Philadelphia" in text
    assert "5-year, vintage 2019" in text
    assert "20% AMI = $19,320" in text
    assert "80% AMI = $77,280" in text
    assert lines[-1] == "Questions: data@example.org"

    assert list(documentation_frame().columns) == ["information"]


def test_columns_fit_headers_and_values(tmp_path, make_record):
    records = [make_record("H1", weight=123456789, puma="03201", tenure=3, income=50000, vehicles=0)]
    frames = build_report_frames(records)
    path = ReportExporter(str(tmp_path / "report.xlsx")).export(documentation_frame(), frames)

    ws = load_workbook(path)["Renter households by PUMA"]
    header = {cell.value: cell.column_letter for cell in ws[1]}
    def width(column):
        return ws.column_dimensions[header[column]].width

    assert width("PUMA") == len("03201") + 2
    assert width("income") == len("AMI_60") + 2
    # "123,456,789" is wider than its header
    assert width("vehicles_0") == len("123,456,789") + 2
    assert width("vehicles_1") == len("vehicles_1") + 2
    assert width("vehicles_6_prop") == len("vehicles_6_prop") + 2

    assert ws[f"{header['vehicles_0_prop']}2"].number_format == "0.0000"
    assert ws[f"{header['vehicles_0']}2"].number_format == "General"

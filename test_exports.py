import io

import openpyxl
import pytest

from academics.exports import ExcelExporter, ImagePDFExporter, PDFExporter, export_report, report_filename
from academics.reports import pivot_attendance, pivot_grades


@pytest.fixture
def attendance_table():
    return pivot_attendance([
        {'student_id': 1, 'student_name': 'Alice Anders', 'class_date': '2024-01-01', 'status': 'present'},
        {'student_id': 1, 'student_name': 'Alice Anders', 'class_date': '2024-01-03', 'status': 'absent'},
        {'student_id': 2, 'student_name': 'Bob <Brown> & Co', 'class_date': '2024-01-01', 'status': 'tardy'},
    ])


@pytest.fixture
def grading_table():
    return pivot_grades([{
        'student_id': 1, 'student_name': 'Alice Anders', 'listening': 60, 'reading': 90, 'writing': 88,
        'speaking': 71, 'grammar_vocab': 69, 'project': 100, 'conversation': 80, 'comment': 'Great project',
    }])


def test_report_filename():
    assert report_filename('attendance', 'Room A', '2024-01') == 'Attendance_Report_Room_A_2024-01.pdf'
    assert report_filename('grading', ext='xlsx') == 'Grading_Report_All_All.xlsx'


def test_table_pdf(attendance_table):
    content = PDFExporter('Attendance Report').write_table(attendance_table).render()
    assert content.startswith(b'%PDF')


def test_table_pdf_with_markup_in_names(attendance_table):
    response = export_report(attendance_table, 'Attendance Report - Q <1>', 'Room <A> & B', None)
    assert response.content.startswith(b'%PDF')


def test_image_pdf(grading_table):
    exporter = ImagePDFExporter('Grading Report')
    image = exporter.render_image(grading_table)
    assert image.size[0] > image.size[1]
    assert exporter.render(grading_table).startswith(b'%PDF')


def test_excel_export(grading_table):
    response = ExcelExporter('Grading Report').write_table(grading_table).get_response('report.xlsx')

    workbook = openpyxl.load_workbook(io.BytesIO(response.content))
    sheet = workbook.active
    assert sheet['A1'].value == 'Student Name'
    assert sheet['B1'].value == 'Listening'
    assert sheet['A2'].value == 'Alice Anders'
    assert sheet['B2'].value == 60
    assert sheet.cell(row=2, column=sheet.max_column).value == 'Great project'


@pytest.mark.parametrize('fmt, strategy, content_type', [
    ('pdf', 'table', 'application/pdf'),
    ('pdf', 'image', 'application/pdf'),
    ('xlsx', 'table', 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'),
])
def test_export_report_response(attendance_table, fmt, strategy, content_type):
    response = export_report(attendance_table, 'Attendance Report', 'Room A', None, fmt=fmt, strategy=strategy)
    assert response['Content-Type'] == content_type
    assert f'Attendance_Report_Room_A_All.{fmt}' in response['Content-Disposition']

"""
Unit tests for the export writers.

Tests field formatting, the CSV tables, the event log and the GPX track.
"""

import io
import unittest
import xml.etree.ElementTree as ET

from blackbox_export.parsers.flight_log import FlightLog, FlightLogEvent, MainFrame
from blackbox_export.processors.field_classifier import FieldClassifier, GPSFieldType
from blackbox_export.utils.attitude_filter import AttitudeEstimate
from blackbox_export.utils.io_utils import OutputSink
from blackbox_export.utils.units import Unit
from blackbox_export.writers.csv_writer import MainCSVWriter, GPSCSVWriter
from blackbox_export.writers.event_writer import EventWriter, format_event
from blackbox_export.writers.field_formatter import FieldFormatter, format_time
from blackbox_export.writers.gpx_writer import GPXWriter, format_gpx_time

MAIN_FIELDS = ['loopIteration', 'time', 'vbatLatest', 'amperageLatest', 'gyroADC[0]']
GPS_FIELDS = ['time', 'GPS_numSat', 'GPS_coord[0]', 'GPS_coord[1]', 'GPS_altitude',
              'GPS_speed', 'GPS_ground_course']


def make_formatter(raw=False, **units):
    log = FlightLog(main_field_names=list(MAIN_FIELDS), gps_field_names=list(GPS_FIELDS),
                    main_field_signed=[False, False, False, False, True])
    tables = FieldClassifier(**units).classify(log)
    return FieldFormatter(log, tables, raw=raw)


class TestFieldFormatter(unittest.TestCase):
    """Test rendering of field values."""

    def test_format_time(self):
        self.assertEqual(format_time(None), "X")
        self.assertEqual(format_time(123), "123")
        self.assertEqual(format_time(-1), "4294967295")

    def test_main_fields_default_units(self):
        formatter = make_formatter()

        values = formatter.format_main_fields((5, 1000, 0xFFF, 0xFFF, -12), 1000)

        self.assertEqual(values, ['  5', '1000', '36.300', '82.500', '-12'])

    def test_main_fields_milli_units(self):
        formatter = make_formatter(unit_vbat=Unit.MILLIVOLTS, unit_amperage=Unit.MILLIAMPS)

        values = formatter.format_main_fields((5, 1000, 0xFFF, 0xFFF, -12), 1000)

        self.assertEqual(values[2:4], ['36300', '82500'])

    def test_unsigned_fields_rendered_as_32_bit(self):
        formatter = make_formatter(unit_vbat=Unit.RAW)

        values = formatter.format_main_fields((-1, 0, 7, 0, 0), 0)

        self.assertEqual(values[0], '4294967295')
        self.assertEqual(values[2], '  7')

    def test_raw_mode_renders_signed(self):
        formatter = make_formatter(raw=True)

        values = formatter.format_main_fields((-1, 0, 0, 0, 0), None)

        self.assertEqual(values[0], ' -1')
        self.assertEqual(values[1], 'X')

    def test_gps_fields(self):
        formatter = make_formatter()

        values = formatter.format_gps_fields((100, 9, 123456789, -1234567, 321, 1234, 1805))

        self.assertEqual(values, ['9', '12.3456789', '-0.1234567', '321', '12.34', '180.5'])

    def test_gps_speed_units(self):
        self.assertEqual(FieldFormatter.format_gps_value(
            1000, GPSFieldType.METERS_PER_SECOND_TIMES_100, Unit.MILES_PER_HOUR), '22.37')
        self.assertEqual(FieldFormatter.format_gps_value(
            1000, GPSFieldType.METERS_PER_SECOND_TIMES_100, Unit.RAW), '1000')

    def test_gps_header_excludes_time(self):
        header = make_formatter(unit_gps_speed=Unit.KILOMETERS_PER_HOUR).gps_header()

        self.assertNotIn('time', header)
        self.assertIn('GPS_speed (km/h)', header)


class TestCSVWriters(unittest.TestCase):
    """Test the main and GPS tables."""

    def setUp(self):
        """Set up test fixtures."""
        self.stream = io.StringIO()
        self.sink = OutputSink(stream=self.stream)
        self.formatter = make_formatter(unit_vbat=Unit.RAW, unit_amperage=Unit.RAW)

    def test_main_header_with_attitude_and_gps(self):
        writer = MainCSVWriter(self.sink, self.formatter, with_attitude=True, with_gps=True)
        writer.write_header()

        header = self.stream.getvalue().strip().split(", ")

        self.assertEqual(header[:5], MAIN_FIELDS)
        self.assertEqual(header[5:8], ['roll', 'pitch', 'heading'])
        self.assertEqual(header[8], 'GPS_numSat')
        self.assertEqual(len(header), 5 + 3 + 6)

    def test_attitude_in_degrees(self):
        writer = MainCSVWriter(self.sink, self.formatter, with_attitude=True)
        frame = MainFrame(True, (0, 0, 0, 0, 0))

        writer.write_frame(frame, 0, AttitudeEstimate(roll=0.5, pitch=-0.25, heading=3.0))

        cells = self.stream.getvalue().strip().split(", ")
        self.assertEqual(cells[-3:], ['28.65', '-14.32', '171.89'])

    def test_positioning_only_merge_row(self):
        writer = MainCSVWriter(self.sink, self.formatter, with_attitude=True, with_gps=True)

        writer.write_merge_row(None, 2500, (2500, 9, 10, 20, 30, 40, 50))

        cells = self.stream.getvalue().rstrip("\n").split(", ")
        self.assertEqual(cells[:5], ['', '2500', '', '', ''])
        self.assertEqual(cells[5:8], ['', '', ''])
        self.assertEqual(cells[8], '9')
        self.assertEqual(writer.rows_written, 1)

    def test_gps_table_header_written_once(self):
        writer = GPSCSVWriter(self.sink, self.formatter)

        writer.write_frame((100, 9, 1, 2, 3, 4, 5), 100)
        writer.write_frame((200, 9, 1, 2, 3, 4, 5), 200)

        lines = self.stream.getvalue().splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith("time, GPS_numSat"))
        self.assertTrue(lines[2].startswith("200, 9"))

    def test_gps_writer_without_sink(self):
        writer = GPSCSVWriter(None, self.formatter)
        writer.write_frame((100, 9, 1, 2, 3, 4, 5), 100)

        self.assertEqual(writer.rows_written, 0)


class TestEventWriter(unittest.TestCase):
    """Test event rendering."""

    def test_sync_beep_uses_own_time(self):
        self.assertEqual(format_event(FlightLogEvent(0, {'time': 42}), 1000),
                         '{name:"Sync beep", time:42}')

    def test_autotune_cycle_start(self):
        event = FlightLogEvent(10, {'phase': 1, 'cycle': 0x83, 'p': 40, 'i': 30, 'd': 20})

        self.assertEqual(format_event(event, 5000),
                         '{name:"Autotune cycle start", time:5000, data:'
                         '{phase:1,cycle:3,p:40,i:30,d:20,rising:1}}')

    def test_autotune_cycle_result(self):
        event = FlightLogEvent(11, {'flags': 2, 'p': 1, 'i': 2, 'd': 3})

        self.assertEqual(format_event(event, 7),
                         '{name:"Autotune cycle result", time:7, data:'
                         '{overshot:false,timedout:true,p:1,i:2,d:3}}')

    def test_autotune_targets(self):
        event = FlightLogEvent(12, {'currentAngle': 125, 'targetAngle': 20, 'targetAngleAtPeak': 18,
                                    'firstPeakAngle': 221, 'secondPeakAngle': 199})

        self.assertEqual(format_event(event, 7),
                         '{name:"Autotune cycle targets", time:7, data:'
                         '{currentAngle:12.5,targetAngle:20,targetAngleAtPeak:18,'
                         'firstPeakAngle:22.1,secondPeakAngle:19.9}}')

    def test_log_end_and_unknown(self):
        self.assertEqual(format_event(FlightLogEvent(255), 99), '{name:"Log clean end", time:99}')
        self.assertEqual(format_event(FlightLogEvent(77), None),
                         '{name:"Unknown event", time:X, data:{eventID:77}}')

    def test_one_line_per_event(self):
        stream = io.StringIO()
        writer = EventWriter(OutputSink(stream=stream))

        writer.write_event(FlightLogEvent(0, {'time': 1}), None)
        writer.write_event(FlightLogEvent(255), 10)

        self.assertEqual(len(stream.getvalue().splitlines()), 2)
        self.assertEqual(writer.events_written, 2)


class TestGPXWriter(unittest.TestCase):
    """Test the GPX track."""

    def test_format_gpx_time(self):
        self.assertEqual(format_gpx_time(0), "1970-01-01T00:00:00.000000Z")
        self.assertEqual(format_gpx_time(3723000456), "1970-01-01T01:02:03.000456Z")

    def test_well_formed_track(self):
        stream = io.StringIO()
        sink = OutputSink(stream=stream)
        writer = GPXWriter(sink)

        writer.add_point(1000000, 123456789, -987654321, 55)
        writer.add_point(None, -5, 5, 60)
        writer.close()

        root = ET.fromstring(stream.getvalue())
        ns = {'gpx': 'http://www.topografix.com/GPX/1/1'}
        points = root.findall('.//gpx:trkpt', ns)

        self.assertEqual(root.tag, '{http://www.topografix.com/GPX/1/1}gpx')
        self.assertEqual(len(points), 2)
        self.assertEqual(points[1].get('lat'), '-0.0000005')
        self.assertIsNone(points[1].find('gpx:time', ns))
        self.assertEqual(len(writer.points), 2)

    def test_no_output_without_points(self):
        stream = io.StringIO()
        writer = GPXWriter(OutputSink(stream=stream))
        writer.close()

        self.assertEqual(stream.getvalue(), "")


if __name__ == '__main__':
    unittest.main()

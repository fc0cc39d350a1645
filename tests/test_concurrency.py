import threading

from evolve_sim.core.geometry import Point
from evolve_sim.core.locks import ReadWriteLock
from evolve_sim.manager.simulator import Simulator


def test_readers_share_the_lock():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5.0)
    ok = []

    def reader():
        with lock.read_locked():
            inside.wait()
            ok.append(True)

    threads = [threading.Thread(target=reader) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5.0)
    assert ok == [True, True]


def test_writer_excludes_readers():
    lock = ReadWriteLock()
    order = []
    writer_in = threading.Event()

    def reader():
        writer_in.wait(timeout=5.0)
        with lock.read_locked():
            order.append('read')

    t = threading.Thread(target=reader)
    with lock.write_locked():
        t.start()
        writer_in.set()
        # Give the reader a chance to (wrongly) get in
        t.join(timeout=0.1)
        order.append('write')
    t.join(timeout=5.0)
    assert order == ['write', 'read']


def test_render_thread_reads_while_stepping(small_config):
    sim = Simulator.from_config(small_config)
    world = sim.world
    errors = []
    reads = [0]
    stop = threading.Event()

    def observer():
        try:
            while True:
                orgs = world.get_organisms()
                for o in orgs:
                    assert world.bounds.contains(o.position)
                    assert 0.0 <= o.energy <= o.energy_capacity
                world.concentration_at(Point(50.0, 50.0))
                total, _ = world.system_energy_info()
                assert total >= 0.0
                world.population_info()
                reads[0] += 1
                if stop.is_set():
                    break
        except Exception as e:      # surfaced to the main thread below
            errors.append(e)

    t = threading.Thread(target=observer)
    t.start()
    try:
        sim.run(150)
    finally:
        stop.set()
        t.join(timeout=10.0)

    assert not t.is_alive()
    assert not errors
    assert reads[0] > 0
    assert sim.step_count == 150

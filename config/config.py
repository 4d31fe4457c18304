config = {
    'generation' : {
        'verbose' : False, # Pythia8 printout (also controls the event listing Pythia prints on its own)
        'resonance_id' : 23, # PDG code of the colour-singlet resonance used when Main:spareFlag2 = on. Its daughters are the particle-gun species.
        'hepmc_format': 'ascii', # Options are 'root' and 'ascii'. Only used when the output filename doesn't say (.root -> 'root', .hepmc/.hepmc3 -> 'ascii'). 'root' needs HepMC3 built with its ROOT interface.
        'momentum_unit': 'MEV', # HepMC3 momentum unit for the written events, 'MEV' or 'GEV'. Pythia works in GeV, the conversion happens when filling the HepMC3 event.
        'length_unit': 'MM' # HepMC3 length unit, 'MM' or 'CM'.
    },

    'reconstruction' : {
        'jet_algorithm' : 'anti_kt', # Options are 'anti_kt', 'kt' and 'cambridge'.
        'jet_radius' : 0.4,
        'jet_name' : 'AntiKt04GenJets', # Prefix for the jet keys in the jet summary, and for the HepMC3 event attributes.
        'n_jets_max' : 20 # Max number of jets stored per event in the jet summary file (HDF5 doesn't support jagged arrays). The jet count is always stored in full.
    },

    'output' : {
        'jet_summary' : True, # Whether or not to write the columnar (HDF5) jet summary next to the HepMC3 file.
        'buffer_size' : 100, # Number of events held in memory before the jet summary is flushed to disk.
        'compression_opts' : 7, # gzip compression for the jet summary file (0-9).
        'run_metadata' : False # Whether to also store time stamps, host name, unique IDs and file paths in the jet summary. Off, so that a fixed card and seed give identical files.
    }
}
